from fastapi import FastAPI
from fastapi.testclient import TestClient

from stevi.api.error_handlers import register_exception_handlers
from stevi.errors import RateLimitedFailure, ValidationFailure
from stevi.models.site_footer import SiteFooterSetting


def test_footer_route(client, db, actor, global_admin):
    actor.act_as(global_admin)

    response = client.post("/admin/marketing/footer", data={"primary_text": "Call 211."})

    assert response.status_code == 200
    assert db.query(SiteFooterSetting).one().primary_text == "Call 211."


def test_pipeline_errors_outside_pipeline_are_rendered():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/invalid")
    def invalid():
        raise ValidationFailure("Bad input.", field_errors={"q": "Bad input."})

    @app.get("/limited")
    def limited():
        raise RateLimitedFailure("Slow down.", 2500)

    client = TestClient(app)

    response = client.get("/invalid")
    assert response.status_code == 400
    assert response.json()["field_errors"] == {"q": "Bad input."}

    response = client.get("/limited")
    assert response.status_code == 429
    assert response.headers["Retry-After"] == "3"
