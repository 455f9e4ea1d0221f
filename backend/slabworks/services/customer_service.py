# Overview: Customer resolution for contracts; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Customer
from .contract_schemas import ContractSubmission


class CustomerNotFoundError(Exception):
    """Raised when a customer id does not exist within the caller's company."""


def get_company_customer(customer_id: int, company_id: int) -> Customer:
    customer = db.session.query(Customer).filter_by(id=customer_id, company_id=company_id).first()
    if customer is None:
        # Same message for "missing" and "other company"
        raise CustomerNotFoundError("Customer not found")
    return customer


def resolve_customer(submission: ContractSubmission, company_id: int) -> Customer:
    """
    Find or create the customer a contract is written for.

    Existing customers keep their data; only blank address/phone/email are
    filled from the submission. The submission is updated in place so the
    sale picks up the effective billing and project address. Does not commit.
    """
    if submission.customer_id is not None:
        customer = get_company_customer(submission.customer_id, company_id)

        if submission.billing_address and not customer.address:
            customer.address = submission.billing_address
        if submission.phone and not customer.phone:
            customer.phone = submission.phone
        if submission.email and not customer.email:
            customer.email = submission.email

        if not submission.billing_address and customer.address:
            submission.billing_address = customer.address
    else:
        customer = Customer(
            company_id=company_id,
            name=submission.name,
            phone=submission.phone,
            email=submission.email,
            address=submission.billing_address,
            postal_code=submission.billing_zip_code,
        )
        db.session.add(customer)

    if submission.company_name is not None:
        customer.company_name = submission.company_name

    if submission.same_address and submission.billing_address:
        submission.project_address = submission.billing_address

    db.session.flush()
    submission.customer_id = customer.id
    return customer
