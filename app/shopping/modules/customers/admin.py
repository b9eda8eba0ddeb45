from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from app.shopping.async_utils import run_async
from app.shopping.db import db_session
from app.shopping.modules.customers.repository import SqlCustomerRepository
from app.shopping.modules.customers.service import (
    CustomerService,
    OutcomeKind,
    customer_from_payload,
    validate_customer_payload,
)

bp = Blueprint("customers", __name__)


def _service() -> CustomerService:
    return CustomerService(SqlCustomerRepository(db_session()))


def _form_payload(customer_id: int | None = None) -> dict:
    payload = {
        "first_name": request.form.get("first_name"),
        "last_name": request.form.get("last_name"),
        "address": request.form.get("address"),
        "discount": request.form.get("discount"),
        "version": request.form.get("version"),
    }
    if customer_id is not None:
        payload["id"] = request.form.get("id")
    return payload


def _lookup_or_abort(outcome):
    if outcome.kind is OutcomeKind.NOT_FOUND:
        abort(404)
    if outcome.kind is not OutcomeKind.FOUND:
        abort(400)
    return outcome.customer


@bp.get("/")
def customers_list():
    q = request.args.get("q")
    sort = request.args.get("sort")
    outcome = run_async(_service().index(q, sort))
    if outcome.kind is not OutcomeKind.FOUND:
        abort(400)
    return render_template("customers/list.html", listing=outcome.listing)


@bp.get("/<int:customer_id>")
def customer_detail(customer_id: int):
    c = _lookup_or_abort(run_async(_service().show(customer_id)))
    return render_template("customers/detail.html", customer=c)


@bp.get("/new")
def customers_new_get():
    outcome = run_async(_service().new())
    return render_template("customers/form.html", customer=outcome.customer, errors=())


@bp.post("/new")
def customers_new_post():
    payload = _form_payload()
    errs = validate_customer_payload(payload)
    outcome = run_async(_service().create(customer_from_payload(payload), errs))
    if outcome.kind is OutcomeKind.CREATED:
        flash("Customer saved.", "success")
        return redirect(url_for("customers.customers_list"))
    if outcome.kind is OutcomeKind.REJECTED:
        return render_template("customers/form.html", customer=outcome.customer, errors=outcome.errors)
    abort(400)


@bp.get("/<int:customer_id>/edit")
def customer_edit_get(customer_id: int):
    c = _lookup_or_abort(run_async(_service().edit_form(customer_id)))
    return render_template("customers/form.html", customer=c, errors=())


@bp.post("/<int:customer_id>/edit")
def customer_edit_post(customer_id: int):
    payload = _form_payload(customer_id)
    errs = validate_customer_payload(payload)
    outcome = run_async(_service().edit(customer_id, customer_from_payload(payload), errs))
    if outcome.kind is OutcomeKind.UPDATED:
        flash("Customer updated.", "success")
        return redirect(url_for("customers.customers_list"))
    if outcome.kind is OutcomeKind.NOT_FOUND:
        abort(404)
    if outcome.kind is OutcomeKind.REJECTED:
        return render_template("customers/form.html", customer=outcome.customer, errors=outcome.errors)
    if outcome.kind is OutcomeKind.CONFLICT:
        return render_template("errors/409.html", customer=outcome.customer, customer_id=customer_id), 409
    abort(400)


@bp.get("/<int:customer_id>/delete")
def customer_delete_get(customer_id: int):
    c = _lookup_or_abort(run_async(_service().delete_confirm(customer_id)))
    return render_template("customers/delete.html", customer=c, customer_id=customer_id)


@bp.post("/<int:customer_id>/delete")
def customer_delete_post(customer_id: int):
    outcome = run_async(_service().delete_execute(customer_id))
    if outcome.kind is OutcomeKind.DELETED:
        flash("Customer deleted.", "success")
        return redirect(url_for("customers.customers_list"))
    flash("Customer could not be deleted. Please try again.", "danger")
    return render_template("customers/delete.html", customer=None, customer_id=customer_id)
