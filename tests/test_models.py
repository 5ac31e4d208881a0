"""
Tests for ControlGastos models

Test strategy:
1. Unit tests for payload models and form drafts
2. Controller and client tests run against an in-memory API (conftest)
3. No real API calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from controlgastos.errors import FormValidationError
from controlgastos.models.finance import (
    CoupleLink,
    CoupleSnapshot,
    DashboardSummary,
    LinkState,
    Transaction,
    TransactionCreate,
    TransactionScope,
    TransactionType,
    UserIdentity,
)
from controlgastos.models.forms import (
    FundingDraft,
    InvitationDraft,
    RegistrationDraft,
    TransactionDraft,
    is_valid_email,
    parse_amount,
)
from controlgastos.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionModels:
    """Tests for transaction payloads."""

    def test_transaction_from_api_row(self):
        """Test embedded category and profile joins are read through aliases."""
        tx = Transaction.model_validate({
            "id": "tx-1",
            "amount": 12.5,
            "type": "expense",
            "scope": "couple",
            "date": "2024-01-05",
            "categories": {"name": "Food", "icon": "🍔", "color": "#f97316"},
            "profiles": {"full_name": "Luis"},
            "created_at": "2024-01-05T10:00:00Z",
        })
        assert tx.amount == Decimal("12.5")
        assert tx.scope == TransactionScope.COUPLE
        assert tx.category.name == "Food"
        assert tx.owner.full_name == "Luis"

    def test_transaction_accepts_iso_timestamp_date(self):
        """Test that a full timestamp keeps only the date part."""
        tx = Transaction.model_validate({
            "id": "tx-1", "amount": 1, "type": "income", "date": "2024-03-09T18:30:00+00:00",
        })
        assert tx.date == date(2024, 3, 9)

    def test_transaction_numeric_id_becomes_string(self):
        """Test integer ids from the API are usable as identity keys."""
        tx = Transaction.model_validate({"id": 42, "amount": 1, "type": "income", "date": "2024-01-01"})
        assert tx.id == "42"

    def test_transaction_scope_defaults_to_individual(self):
        """Test missing scope is treated as individual."""
        tx = Transaction.model_validate({"id": "t", "amount": 1, "type": "expense", "date": "2024-01-01"})
        assert tx.scope == TransactionScope.INDIVIDUAL

    def test_transaction_create_sends_amount_as_number(self):
        """Test amount is a JSON number, not a string."""
        request = TransactionCreate(
            amount=Decimal("50.5"),
            type=TransactionType.EXPENSE,
            scope=TransactionScope.INDIVIDUAL,
            category_id="cat-food",
            date=date(2024, 1, 5),
        )
        payload = request.to_payload()
        assert payload["amount"] == 50.5
        assert isinstance(payload["amount"], float)
        assert payload["date"] == "2024-01-05"
        assert payload["couple_id"] is None

    def test_transaction_create_rejects_zero_amount(self):
        """Test that zero amounts are rejected."""
        with pytest.raises(ValueError):
            TransactionCreate(
                amount=Decimal("0"),
                type=TransactionType.EXPENSE,
                scope=TransactionScope.INDIVIDUAL,
                category_id="cat-food",
                date=date(2024, 1, 5),
            )


class TestCoupleModels:
    """Tests for couple link payloads."""

    def _link(self, wallet):
        return CoupleLink.model_validate({
            "id": "couple-1",
            "user1": {"full_name": "Ana", "email": "ana@example.com"},
            "user2": {"full_name": None, "email": "luis@example.com"},
            "couple_wallets": wallet,
        })

    def test_wallet_as_list(self):
        """Test a one-element wallet list is unwrapped."""
        assert self._link([{"balance": 120}]).balance == Decimal("120")

    def test_wallet_as_object(self):
        """Test a wallet object is accepted as-is."""
        assert self._link({"balance": "7.25"}).balance == Decimal("7.25")

    def test_missing_wallet_is_zero(self):
        """Test an empty wallet join reads as a zero balance."""
        assert self._link([]).balance == Decimal("0")

    def test_member_display_name_falls_back_to_email(self):
        """Test members without a name show their email."""
        link = self._link(None)
        assert link.user2.display_name == "luis@example.com"

    def test_snapshot_link_state(self):
        """Test link state is derived from the presence of a link."""
        assert CoupleSnapshot().link_state == LinkState.UNLINKED
        assert CoupleSnapshot(couple=self._link(None)).link_state == LinkState.LINKED


class TestDashboardModels:
    """Tests for the dashboard summary."""

    def test_camel_case_totals(self):
        """Test totals are read from the camelCase wire names."""
        summary = DashboardSummary.model_validate({
            "categories": [{"id": 1, "name": "Food", "total": 30}],
            "totalExpenses": 100,
            "totalIncome": 250,
            "balance": 150,
        })
        assert summary.total_expenses == Decimal("100")
        assert summary.total_income == Decimal("250")
        assert summary.categories[0].id == "1"

    def test_user_display_name(self):
        """Test user display name falls back to email."""
        assert UserIdentity(id="u", email="a@b.co").display_name == "a@b.co"
        assert UserIdentity(id="u", email="a@b.co", full_name="Ana").display_name == "Ana"


class TestFormDrafts:
    """Tests for local form state and validation."""

    def test_parse_amount(self):
        """Test amount parsing accepts decimals and rejects the rest."""
        assert parse_amount(" 50.5 ") == Decimal("50.5")
        for raw in ("", "abc", "0", "-3", "NaN"):
            with pytest.raises(FormValidationError):
                parse_amount(raw)

    def test_email_shape(self):
        """Test the email check is a shape check only."""
        assert is_valid_email("luis@example.com")
        assert not is_valid_email("luis")
        assert not is_valid_email("luis@example")
        assert not is_valid_email("")

    def test_transaction_draft_builds_request(self):
        """Test a valid draft becomes a create request."""
        draft = TransactionDraft(amount="50.5", category_id="cat-food", date="2024-01-05")
        request = draft.to_request(couple_id="couple-1")
        assert request.amount == Decimal("50.5")
        assert request.couple_id is None

    def test_transaction_draft_couple_scope_carries_couple_id(self):
        """Test couple scope sends the couple id."""
        draft = TransactionDraft(
            amount="10", category_id="cat-food", scope=TransactionScope.COUPLE, date="2024-01-05"
        )
        assert draft.to_request(couple_id="couple-1").couple_id == "couple-1"

    def test_transaction_draft_couple_scope_requires_link(self):
        """Test couple scope without a couple link is refused locally."""
        draft = TransactionDraft(
            amount="10", category_id="cat-food", scope=TransactionScope.COUPLE, date="2024-01-05"
        )
        with pytest.raises(FormValidationError) as exc:
            draft.to_request(couple_id=None)
        assert exc.value.field == "scope"

    def test_transaction_draft_requires_category(self):
        """Test category is required."""
        with pytest.raises(FormValidationError) as exc:
            TransactionDraft(amount="10").to_request(None)
        assert exc.value.field == "category_id"

    def test_transaction_draft_reset(self):
        """Test reset restores defaults."""
        draft = TransactionDraft(amount="10", category_id="cat-food", description="Lunch")
        draft.reset()
        assert draft.amount == ""
        assert draft.category_id == ""
        assert draft.date == date.today().isoformat()

    def test_invitation_and_funding_readiness(self):
        """Test the disable-until-valid flags."""
        assert not InvitationDraft(partner_email="nope").is_ready
        assert InvitationDraft(partner_email="luis@example.com").is_ready
        assert not FundingDraft(amount="0").is_ready
        assert FundingDraft(amount="25").is_ready
        assert FundingDraft(amount="25").to_payload() == {"amount": 25.0}

    def test_amount_too_large_for_json(self):
        """Test amounts that overflow a float are rejected."""
        with pytest.raises(FormValidationError) as exc:
            parse_amount("1e400")
        assert exc.value.message == "Amount is too large"
        assert not FundingDraft(amount="1e400").is_ready
        with pytest.raises(FormValidationError):
            TransactionDraft(amount="1e400", category_id="cat-food").to_request(None)

    def test_registration_requires_all_fields(self):
        """Test registration validation order and messages."""
        with pytest.raises(FormValidationError) as exc:
            RegistrationDraft(email="a@b.co", password="x").validate_fields()
        assert exc.value.field == "full_name"
        RegistrationDraft(full_name="Ana", email="a@b.co", password="x").validate_fields()


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Recorded expense",
        )
        assert event.event_id is not None
        assert event.timestamp.tzinfo is not None
        assert event.severity == AuditSeverity.INFO

    def test_mutation_rejected_builder(self):
        """Test the rejected-mutation event keeps the server message."""
        correlation_id = uuid4()
        event = AuditEventBuilder.mutation_rejected(
            view="couple",
            action="invite_partner",
            status_code=400,
            error_message="already linked",
            correlation_id=correlation_id,
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "already linked"
        assert event.to_log_dict()["correlation_id"] == str(correlation_id)

    def test_view_load_failed_builder(self):
        """Test the load failure event records the stale flag."""
        event = AuditEventBuilder.view_load_failed(
            view="dashboard", error_message="boom", kept_stale_snapshot=True
        )
        assert event.details == {"kept_stale_snapshot": True}
        assert event.is_user_action is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
