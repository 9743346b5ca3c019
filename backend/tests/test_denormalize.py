"""Party references and the snapshots copied from them."""

from types import SimpleNamespace

import pytest

from app.middleware.exceptions import ValidationFailedError
from app.models.tenant.customer import Customer
from app.services.denormalize import (
    CUSTOMER,
    PAYING_CUSTOMER,
    WAREHOUSE,
    PartyRef,
    apply_party,
    parse_party_ref,
    party_snapshot,
)


@pytest.mark.unit
class TestParsePartyRef:

    def test_mapping(self):
        assert parse_party_ref({"kind": "customer", "id": "c1"}) == PartyRef(CUSTOMER, "c1")

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("customers:c1", PartyRef(CUSTOMER, "c1")),
            ("paying-customers:p9", PartyRef(PAYING_CUSTOMER, "p9")),
            (" Customers : c1 ", PartyRef(CUSTOMER, "c1")),
        ],
    )
    def test_legacy_strings(self, value, expected):
        assert parse_party_ref(value) == expected

    def test_bare_id_is_a_paying_customer(self):
        assert parse_party_ref("p9") == PartyRef(PAYING_CUSTOMER, "p9")

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert parse_party_ref(value) is None

    def test_unknown_prefix(self):
        with pytest.raises(ValidationFailedError, match="Unknown party reference type"):
            parse_party_ref("suppliers:4")

    def test_kind_not_allowed_here(self):
        with pytest.raises(ValidationFailedError) as exc:
            parse_party_ref("warehouses:w1")
        assert exc.value.details == {"allowed": [CUSTOMER, PAYING_CUSTOMER]}

        ref = parse_party_ref("warehouses:w1", allowed=(CUSTOMER, PAYING_CUSTOMER, WAREHOUSE))
        assert ref == PartyRef(WAREHOUSE, "w1")

    def test_missing_id(self):
        with pytest.raises(ValidationFailedError, match="missing an id"):
            parse_party_ref("customers:")

    def test_str(self):
        assert str(PartyRef(CUSTOMER, "c1")) == "customer:c1"


@pytest.mark.integration
@pytest.mark.asyncio
class TestSnapshots:

    FIELDS = {
        "name": "customer_name",
        "city": "customer_location",
        "state": "customer_state",
        "contact": "customer_contact",
    }

    async def test_paying_customer_uses_billing_address(self, db_session, ctx, parties):
        _, payer = parties
        job = SimpleNamespace()
        await apply_party(db_session, ctx, job, "customer", PartyRef(PAYING_CUSTOMER, payer.id), self.FIELDS)
        assert (job.customer_kind, job.customer_id) == (PAYING_CUSTOMER, payer.id)
        assert job.customer_name == "Blue Water Imports"
        assert (job.customer_location, job.customer_state) == ("Sydney", "NSW")
        assert job.customer_contact == "Dana Reyes"

    async def test_warehouse(self, db_session, ctx, warehouse):
        snapshot = await party_snapshot(db_session, ctx, PartyRef(WAREHOUSE, warehouse.id))
        assert (snapshot.name, snapshot.city, snapshot.state) == ("Port Botany DC", "Sydney", "NSW")

    async def test_foreign_party_saves_without_snapshot(self, db_session, ctx, tenant_b):
        foreign = Customer(tenant_id=tenant_b.id, customer_name="Inland Grocers")
        db_session.add(foreign)
        await db_session.commit()

        job = SimpleNamespace()
        await apply_party(db_session, ctx, job, "customer", PartyRef(CUSTOMER, foreign.id), self.FIELDS)
        assert job.customer_id == foreign.id
        assert job.customer_name is None

    async def test_clearing(self, db_session, ctx):
        job = SimpleNamespace(customer_name="Old")
        await apply_party(db_session, ctx, job, "customer", None, self.FIELDS)
        assert job.customer_kind is None
        assert job.customer_name is None
