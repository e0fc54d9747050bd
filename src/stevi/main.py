from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

import stevi.models  # register every table on Base.metadata
from stevi.api.error_handlers import register_exception_handlers
from stevi.api.routes import inventory, invites, members, organizations, website
from stevi.logging_config import configure_logging
from stevi.surfaces import ADMIN_SURFACES, ORG_WORKSPACE
from stevi.tracing import configure_tracing

# ------------------------------------------------------------------
# Configure Observability
# ------------------------------------------------------------------
configure_logging()
configure_tracing()

app = FastAPI(title="STEVI portal")
register_exception_handlers(app)

# ------------------------------------------------------------------
# Surfaces: one shared pipeline, thin route trees per surface
# ------------------------------------------------------------------
for surface in ADMIN_SURFACES:
    app.include_router(organizations.build_router(surface))
    app.include_router(members.build_router(surface))
    app.include_router(invites.build_router(surface))
    app.include_router(inventory.build_router(surface))
    app.include_router(website.build_router(surface))

app.include_router(members.build_router(ORG_WORKSPACE))
app.include_router(invites.build_router(ORG_WORKSPACE))
app.include_router(organizations.build_settings_router(ORG_WORKSPACE))

# ------------------------------------------------------------------
# Observability
# ------------------------------------------------------------------
FastAPIInstrumentor.instrument_app(app)
Instrumentator().instrument(app).expose(app)

# ------------------------------------------------------------------
# Health Check
# ------------------------------------------------------------------
@app.get("/health")
def health_check():
    return {"status": "ok"}
