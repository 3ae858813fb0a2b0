import logging
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from flask import Flask, current_app, jsonify, request, session

from loan_finance.data_models import LoanTerms
from loan_finance.engine import (
    aggregate_breakup,
    calculate_live_outstanding,
    calculate_principal_outstanding,
    generate_schedule,
    summarize_loan,
    yearly_breakdown,
)
from loan_finance_web.config import Config
from loan_finance_web.quotation_store import create_store_from_url

log = logging.getLogger(__name__)


class BadRequest(Exception):
    pass


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    return payload


def _first(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload and payload[key] not in (None, ""):
            return payload[key]
    return default


def _payload_to_terms(payload: Mapping[str, Any]) -> LoanTerms:
    """Build loan terms from a request body.

    When a ``breakup`` object is present its total is the principal, with the
    top-level ``principal`` (or ``approved_amount``) used only as the fallback
    for an empty breakup.
    """
    principal = _first(payload, "principal", "approved_amount", "loan_amount", default=0)
    breakup = payload.get("breakup")
    if isinstance(breakup, Mapping):
        principal = aggregate_breakup(breakup, principal).total
    return LoanTerms.from_raw(
        principal=principal,
        annual_rate_percent=_first(payload, "annual_rate_percent", "rate", "roi", default=0),
        tenure_months=_first(payload, "tenure_months", "tenure", default=0),
        rate_type=_first(payload, "rate_type", "roi_type", default="Reducing"),
        first_installment_date=_first(payload, "first_installment_date", "first_emi_date"),
    )


def _summary_for(terms: LoanTerms) -> Dict[str, Any]:
    return summarize_loan(
        terms.principal, terms.annual_rate_percent, terms.tenure_months, terms.rate_type
    ).to_dict()


def _terms_to_dict(terms: LoanTerms) -> Dict[str, Any]:
    return {
        "principal": terms.principal,
        "annual_rate_percent": terms.annual_rate_percent,
        "tenure_months": terms.tenure_months,
        "rate_type": terms.rate_type,
        "first_installment_date": (
            terms.first_installment_date.isoformat() if terms.first_installment_date else None
        ),
    }


def create_app(config_overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)
    app.extensions["quotation_store"] = create_store_from_url(
        app.config["QUOTATION_DATABASE_URL"], app.config["QUOTATION_MAX_PER_USER"]
    )

    def store():
        return current_app.extensions["quotation_store"]

    @app.errorhandler(BadRequest)
    def handle_bad_request(exc):
        log.warning("Rejected request to %s: %s", request.path, exc)
        return jsonify({"error": str(exc)}), 400

    @app.post("/api/emi")
    def emi():
        terms = _payload_to_terms(_json_body())
        return jsonify(_summary_for(terms))

    @app.post("/api/schedule")
    def schedule():
        terms = _payload_to_terms(_json_body())
        entries = generate_schedule(
            terms.principal,
            terms.annual_rate_percent,
            terms.tenure_months,
            terms.first_installment_date,
            terms.rate_type,
        )
        return jsonify(
            {
                "summary": _summary_for(terms),
                "schedule": [e.to_dict() for e in entries],
                "yearly": [row.to_dict() for row in yearly_breakdown(entries)],
            }
        )

    @app.post("/api/outstanding")
    def outstanding():
        terms = _payload_to_terms(_json_body())
        result = calculate_live_outstanding(
            terms.principal,
            terms.annual_rate_percent,
            terms.tenure_months,
            terms.first_installment_date,
            terms.rate_type,
        )
        return jsonify(result.to_dict())

    @app.post("/api/outstanding/actual")
    def actual_outstanding():
        payload = _json_body()
        terms = _payload_to_terms(payload)
        payments = payload.get("payments") or []
        if not isinstance(payments, list):
            raise BadRequest("payments must be a list")
        result = calculate_principal_outstanding(
            terms.principal,
            terms.annual_rate_percent,
            terms.tenure_months,
            _first(payload, "disbursement_date", "first_installment_date", "first_emi_date"),
            payments,
        )
        return jsonify(result.to_dict())

    @app.post("/api/breakup")
    def breakup():
        payload = _json_body()
        components = payload.get("components") or {}
        if not isinstance(components, Mapping):
            raise BadRequest("components must be an object")
        result = aggregate_breakup(components, _first(payload, "approved_amount", "fallback", default=0))
        return jsonify(result.to_dict())

    @app.get("/api/quotations")
    def list_quotations():
        return jsonify(store().list_quotations(_ensure_user_token()))

    @app.post("/api/quotations")
    def create_quotation():
        payload = _json_body()
        terms = _payload_to_terms(payload)
        quotation_id = uuid4().hex
        customer_name = str(payload.get("customer_name", "")).strip() or "Customer"
        store().add_quotation(
            _ensure_user_token(), quotation_id, customer_name, _terms_to_dict(terms), _summary_for(terms)
        )
        return jsonify(store().get_quotation(_ensure_user_token(), quotation_id)), 201

    @app.get("/api/quotations/<quotation_id>")
    def get_quotation(quotation_id: str):
        quotation = store().get_quotation(_ensure_user_token(), quotation_id)
        if quotation is None:
            return jsonify({"error": "Quotation not found"}), 404
        return jsonify(quotation)

    @app.delete("/api/quotations/<quotation_id>")
    def remove_quotation(quotation_id: str):
        if not store().remove_quotation(_ensure_user_token(), quotation_id):
            return jsonify({"error": "Quotation not found"}), 404
        return "", 204

    return app


if __name__ == "__main__":
    print("Starting loan finance API...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
