"""
Tests for ledger API views.

Covers authentication, owner scoping, the domain error envelope and the
main request/response shapes of each endpoint.
"""

import uuid
from datetime import date

from django.urls import reverse
from rest_framework import status

from ledger.choices import ActionType, TransactionKind, TransactionStatus
from ledger.models import ActionHistory, Ledger, Transaction
from ledger.services import LedgerService


def post_spending(budget, category, account, amount=2500):
    return LedgerService.post(
        ledger_id=budget.id,
        debit_account_id=category.id,
        credit_account_id=account.id,
        amount=amount,
        date=date(2024, 3, 1),
    )


class TestLedgerEndpoints:
    """Tests for /ledgers/ and /ledgers/{id}/."""

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse("ledger:ledger-list"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_ledger(self, authenticated_client, user):
        response = authenticated_client.post(
            reverse("ledger:ledger-list"), {"name": "Household"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        budget = Ledger.objects.get(id=response.data["id"])
        assert budget.user == user
        assert budget.accounts.count() == 3

    def test_list_only_own_ledgers(self, authenticated_client, budget, other_user):
        Ledger.objects.create(user=other_user, name="Theirs")

        response = authenticated_client.get(reverse("ledger:ledger-list"))

        assert response.status_code == status.HTTP_200_OK
        assert [row["id"] for row in response.data["results"]] == [str(budget.id)]

    def test_other_users_ledger_is_not_found(self, authenticated_client_factory, other_user, budget):
        client = authenticated_client_factory(other_user)

        response = client.get(reverse("ledger:ledger-detail", args=[budget.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "LEDGER_NOT_FOUND"

    def test_patch_ledger(self, authenticated_client, budget):
        response = authenticated_client.patch(
            reverse("ledger:ledger-detail", args=[budget.id]), {"name": "Family"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Family"

    def test_delete_ledger(self, authenticated_client, budget, groceries, checking):
        post_spending(budget, groceries, checking)

        response = authenticated_client.delete(reverse("ledger:ledger-detail", args=[budget.id]))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Ledger.objects.filter(id=budget.id).exists()


class TestAccountEndpoints:
    """Tests for account endpoints."""

    def test_create_and_list(self, authenticated_client, budget):
        url = reverse("ledger:account-list", args=[budget.id])

        created = authenticated_client.post(url, {"name": "Checking", "type": "asset"}, format="json")
        listed = authenticated_client.get(url)

        assert created.status_code == status.HTTP_201_CREATED
        assert created.data["internal_type"] == "asset_like"
        assert created.data["balance"] == 0
        assert "Checking" in [row["name"] for row in listed.data]

    def test_duplicate_name_conflict(self, authenticated_client, budget, checking):
        response = authenticated_client.post(
            reverse("ledger:account-list", args=[budget.id]),
            {"name": "Checking", "type": "asset"},
            format="json",
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "ACCOUNT_NAME_TAKEN"

    def test_invalid_type_is_bad_request(self, authenticated_client, budget):
        response = authenticated_client.post(
            reverse("ledger:account-list", args=[budget.id]),
            {"name": "Odd", "type": "bogus"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_delete_account_in_use(self, authenticated_client, budget, groceries, checking):
        post_spending(budget, groceries, checking)

        response = authenticated_client.delete(reverse("ledger:account-detail", args=[checking.id]))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "ACCOUNT_IN_USE"

    def test_rename_account(self, authenticated_client, checking):
        response = authenticated_client.patch(
            reverse("ledger:account-detail", args=[checking.id]), {"name": "Joint"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Joint"

    def test_balance_with_as_of(self, authenticated_client, budget, groceries, checking):
        post_spending(budget, groceries, checking)

        response = authenticated_client.get(
            reverse("ledger:account-balance", args=[checking.id]), {"as_of": "2024-02-01"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["balance"] == 0
        assert response.data["as_of"] == "2024-02-01"

    def test_history(self, authenticated_client, budget, groceries, checking):
        txn = post_spending(budget, groceries, checking)

        response = authenticated_client.get(reverse("ledger:account-history", args=[checking.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data[0]["transaction_id"] == str(txn.id)
        assert response.data[0]["running_balance"] == -2500

    def test_history_rejects_bad_limit(self, authenticated_client, checking):
        response = authenticated_client.get(
            reverse("ledger:account-history", args=[checking.id]), {"limit": "many"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestTransactionEndpoints:
    """Tests for posting and correcting transactions over the API."""

    def test_post_transaction(self, authenticated_client, budget, groceries, checking, user):
        response = authenticated_client.post(
            reverse("ledger:transaction-list", args=[budget.id]),
            {
                "debit_account_id": str(groceries.id),
                "credit_account_id": str(checking.id),
                "amount": 4250,
                "date": "2024-03-02",
                "description": "Farmers market",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        txn = Transaction.objects.get(id=response.data["id"])
        assert txn.created_by == user
        assert response.data["debit_account_name"] == "Groceries"

    def test_zero_amount_rejected(self, authenticated_client, budget, groceries, checking):
        response = authenticated_client.post(
            reverse("ledger:transaction-list", args=[budget.id]),
            {
                "debit_account_id": str(groceries.id),
                "credit_account_id": str(checking.id),
                "amount": 0,
                "date": "2024-03-02",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not Transaction.objects.exists()

    def test_same_account_error_envelope(self, authenticated_client, budget, checking):
        response = authenticated_client.post(
            reverse("ledger:transaction-list", args=[budget.id]),
            {
                "debit_account_id": str(checking.id),
                "credit_account_id": str(checking.id),
                "amount": 100,
                "date": "2024-03-02",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "SAME_ACCOUNT"
        assert "error" in response.data

    def test_register_and_audit_views(self, authenticated_client, budget, groceries, checking):
        kept = post_spending(budget, groceries, checking, amount=100)
        gone = post_spending(budget, groceries, checking, amount=200)
        LedgerService.soft_delete(gone.id)
        url = reverse("ledger:transaction-list", args=[budget.id])

        register = authenticated_client.get(url)
        audit = authenticated_client.get(url, {"audit": "true"})

        assert [row["id"] for row in register.data["results"]] == [str(kept.id)]
        assert audit.data["count"] == 2

    def test_filter_by_account(self, authenticated_client, budget, groceries, rent, checking):
        post_spending(budget, groceries, checking)
        post_spending(budget, rent, checking)

        response = authenticated_client.get(
            reverse("ledger:transaction-list", args=[budget.id]), {"account": str(rent.id)}
        )

        assert response.data["count"] == 1

    def test_reverse(self, authenticated_client, budget, groceries, checking):
        txn = post_spending(budget, groceries, checking)

        response = authenticated_client.post(reverse("ledger:transaction-reverse", args=[txn.id]))

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["kind"] == TransactionKind.REVERSAL
        assert response.data["reversal_of"] == txn.id

    def test_reverse_twice_conflicts(self, authenticated_client, budget, groceries, checking):
        txn = post_spending(budget, groceries, checking)
        url = reverse("ledger:transaction-reverse", args=[txn.id])
        authenticated_client.post(url)

        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "INVALID_TRANSACTION_STATE"

    def test_edit(self, authenticated_client, budget, groceries, checking):
        txn = post_spending(budget, groceries, checking)

        response = authenticated_client.patch(
            reverse("ledger:transaction-detail", args=[txn.id]), {"amount": 3100}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["amount"] == 3100
        assert response.data["id"] != str(txn.id)

    def test_soft_delete(self, authenticated_client, budget, groceries, checking):
        txn = post_spending(budget, groceries, checking)

        response = authenticated_client.delete(reverse("ledger:transaction-detail", args=[txn.id]))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        txn.refresh_from_db()
        assert txn.status == TransactionStatus.DELETED

    def test_bulk_delete(self, authenticated_client, budget, groceries, checking):
        ids = [str(post_spending(budget, groceries, checking, amount=n).id) for n in (100, 200)]

        response = authenticated_client.post(
            reverse("ledger:transaction-bulk-delete", args=[budget.id]),
            {"transaction_ids": ids},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"deleted": 2}

    def test_bulk_delete_rejects_unknown_ids(self, authenticated_client, budget, groceries, checking):
        txn = post_spending(budget, groceries, checking)

        response = authenticated_client.post(
            reverse("ledger:transaction-bulk-delete", args=[budget.id]),
            {"transaction_ids": [str(txn.id), str(uuid.uuid4())]},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        txn.refresh_from_db()
        assert txn.status == TransactionStatus.ACTIVE

    def test_other_users_transaction_is_not_found(self, authenticated_client_factory, other_user, budget, groceries, checking):
        txn = post_spending(budget, groceries, checking)
        client = authenticated_client_factory(other_user)

        response = client.post(reverse("ledger:transaction-reverse", args=[txn.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_transfer(self, authenticated_client, budget, checking, savings):
        response = authenticated_client.post(
            reverse("ledger:transfer", args=[budget.id]),
            {
                "from_account_id": str(checking.id),
                "to_account_id": str(savings.id),
                "amount": 5000,
                "date": "2024-03-05",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["kind"] == TransactionKind.TRANSFER
        assert savings.get_balance() == 5000


class TestHistoryEndpoints:
    """Tests for action history and undo."""

    def test_history_lists_actions(self, authenticated_client, budget, groceries, checking):
        post_spending(budget, groceries, checking)

        response = authenticated_client.get(reverse("ledger:action-history", args=[budget.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["results"][0]["action_type"] == ActionType.POST_TRANSACTION

    def test_undo(self, authenticated_client, budget, groceries, checking):
        post_spending(budget, groceries, checking)
        action = ActionHistory.objects.get(action_type=ActionType.POST_TRANSACTION)

        response = authenticated_client.post(reverse("ledger:action-undo", args=[action.id]))

        assert response.status_code == status.HTTP_201_CREATED
        assert checking.get_balance() == 0

    def test_undo_unsupported(self, authenticated_client, budget):
        action = ActionHistory.objects.get(ledger=budget, action_type=ActionType.CREATE_LEDGER)

        response = authenticated_client.post(reverse("ledger:action-undo", args=[action.id]))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "UNDO_NOT_SUPPORTED"
