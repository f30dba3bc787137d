from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.crm.db import db_session
from app.crm.errors import ValidationError
from app.crm.modules.customers.repository import CustomerRepository
from app.crm.modules.customers.service import CustomerService
from app.crm.modules.customers.validation import validate_customer_payload

bp = Blueprint("customers", __name__)


def _service() -> CustomerService:
    return CustomerService(CustomerRepository(db_session()))


def _json_body():
    if not request.is_json:
        raise ValidationError(message="Request body must be JSON (Content-Type: application/json)")
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationError(message="Request body is not valid JSON")
    return payload


# ---------- Create ----------
@bp.post("/customer")
def create_customer():
    data = validate_customer_payload(_json_body())
    customer = _service().create(data)
    db_session().commit()
    return jsonify(customer.to_dict()), 201


# ---------- List / search ----------
@bp.get("/customer")
def list_customers():
    search = request.args.get("search")
    customers = _service().find_all(search)
    return jsonify([c.to_dict() for c in customers]), 200


# ---------- Detail ----------
@bp.get("/customer/<customer_id>")
def get_customer(customer_id: str):
    customer = _service().find_one(customer_id)
    return jsonify(customer.to_dict()), 200


# ---------- Update ----------
@bp.route("/customer/<customer_id>", methods=["PUT", "PATCH"])
def update_customer(customer_id: str):
    data = validate_customer_payload(_json_body(), partial=True)
    customer = _service().update(customer_id, data)
    db_session().commit()
    return jsonify(customer.to_dict()), 200


# ---------- Delete ----------
@bp.delete("/customer/<customer_id>")
def delete_customer(customer_id: str):
    _service().remove(customer_id)
    db_session().commit()
    return "", 204
