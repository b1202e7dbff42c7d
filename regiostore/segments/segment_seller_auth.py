from __future__ import annotations

import re

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from regiostore.extensions import db
from regiostore.models import Seller
from regiostore.utils.api_errors import auth_failure, error_response
from regiostore.utils.jwt_utils import ROLE_SELLER, create_access_token

seller_auth_bp = Blueprint("seller_auth_bp", __name__, url_prefix="/api/seller/auth")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^[6-9]\d{9}$")
_PINCODE_RE = re.compile(r"^\d{6}$")


def _current_seller() -> Seller | None:
    if getattr(g, "auth_role", None) != ROLE_SELLER:
        return None
    sid = getattr(g, "auth_subject_id", None)
    if sid is None:
        return None
    return db.session.get(Seller, int(sid))


def _text(data: dict, *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


@seller_auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = _text(data, "email").lower()
    password = data.get("password") or ""
    fullname = _text(data, "fullname", "full_name", "name")
    phone = _text(data, "phone")
    store_name = _text(data, "store", "storeName", "store_name")
    store_address = _text(data, "address", "storeAddress", "store_address")
    pincode = _text(data, "pincode", "pinCode")
    state = _text(data, "state")
    city = _text(data, "city")

    if not email or not password:
        return error_response("VALIDATION_FAILED", "Email & Password required", 400)
    if not _EMAIL_RE.match(email):
        return error_response("VALIDATION_FAILED", "Invalid email", 400)
    if len(password) < 8:
        return error_response("VALIDATION_FAILED", "Password must be at least 8 characters", 400)
    if not fullname or not store_name or not state or not city:
        return error_response("VALIDATION_FAILED", "fullname, store, state and city are required", 400)
    if not _PHONE_RE.match(phone):
        return error_response("VALIDATION_FAILED", "Invalid phone number", 400)
    if not _PINCODE_RE.match(pincode):
        return error_response("VALIDATION_FAILED", "Invalid pincode", 400)

    existing = Seller.query.filter(or_(Seller.email == email, Seller.phone == phone)).first()
    if existing:
        if existing.email == email:
            return error_response("EMAIL_TAKEN", "Email already registered", 409)
        return error_response("PHONE_TAKEN", "Phone number already used", 409)

    seller = Seller(
        email=email,
        fullname=fullname,
        phone=phone,
        store_name=store_name,
        store_address=store_address or None,
        pincode=pincode,
        state=state,
        city=city,
    )
    seller.set_password(password)
    try:
        db.session.add(seller)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return error_response("SELLER_EXISTS", "Seller already registered", 409)

    current_app.logger.info("seller_registered seller_id=%s", int(seller.id))
    return jsonify({"ok": True, "message": "Registration Successful. Please log in to get your token."}), 201


@seller_auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = _text(data, "email").lower()
    password = data.get("password") or ""
    if not email or not password:
        return error_response("VALIDATION_FAILED", "All fields are required", 400)

    seller = Seller.query.filter_by(email=email).first()
    if not seller or not seller.check_password(password):
        return error_response("INVALID_CREDENTIALS", "Invalid credentials", 401)

    token = create_access_token(int(seller.id), ROLE_SELLER)
    return jsonify({"ok": True, "message": "Login successful", "seller": {"id": int(seller.id), "token": token}}), 200


@seller_auth_bp.get("/details")
def details():
    seller = _current_seller()
    if not seller:
        return auth_failure(ROLE_SELLER)
    return jsonify({"ok": True, "seller": seller.to_dict()}), 200
