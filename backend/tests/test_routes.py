# Overview: HTTP-level tests for the JSON API: status codes and error mapping.

from clubcash.extensions import db
from clubcash.models import AuditLog
from clubcash.services import audit_service


def _post(client, url, payload):
    return client.post(url, json=payload)


class TestHealth:

    def test_health_ok(self, client, db_session):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.get_json()["checks"]["database"]["status"] == "healthy"


class TestBuyInRoutes:

    def test_buy_in_created(self, client, poker_table, player):
        res = _post(client, "/api/buy-ins", {
            "table_id": poker_table.id,
            "player_id": player.id,
            "amount_cents": 10000,
            "payment_method": "cash",
        })

        assert res.status_code == 201
        body = res.get_json()["buy_in"]
        assert body["amount_cents"] == 10000
        assert body["player_name"] == "João Silva"

    def test_decimal_amount_accepted(self, client, poker_table, player):
        res = _post(client, "/api/buy-ins", {
            "table_id": poker_table.id,
            "player_id": player.id,
            "amount": "12,50",
            "payment_method": "pix",
        })
        assert res.status_code == 201
        assert res.get_json()["buy_in"]["amount_cents"] == 1250

    def test_limit_exceeded_is_conflict(self, client, poker_table, player):
        res = _post(client, "/api/buy-ins", {
            "table_id": poker_table.id,
            "player_id": player.id,
            "amount_cents": 60000,
            "payment_method": "credit_fiado",
        })

        assert res.status_code == 409
        assert res.get_json()["kind"] == "LimitExceeded"

    def test_missing_fields(self, client, db_session):
        res = _post(client, "/api/buy-ins", {"amount_cents": 100})
        assert res.status_code == 400

    def test_non_json_body(self, client, db_session):
        res = client.post("/api/buy-ins", data="nope", content_type="text/plain")
        assert res.status_code == 400

    def test_unknown_table_is_not_found(self, client, player):
        res = _post(client, "/api/buy-ins", {
            "table_id": 999,
            "player_id": player.id,
            "amount_cents": 100,
            "payment_method": "cash",
        })
        assert res.status_code == 404

    def test_delete_then_undo(self, client, poker_table, player):
        created = _post(client, "/api/buy-ins", {
            "table_id": poker_table.id,
            "player_id": player.id,
            "amount_cents": 10000,
            "payment_method": "credit_fiado",
        }).get_json()["buy_in"]

        res = client.delete(f"/api/buy-ins/{created['id']}")
        assert res.status_code == 200
        assert res.get_json()["snapshot"]["credit_was_paid"] is False

        entry = db.session.query(AuditLog).filter_by(event_type=audit_service.EVENT_BUY_IN_CANCELLED).one()
        res = client.post(f"/api/audit/{entry.id}/undo")
        assert res.status_code == 201
        assert res.get_json()["restored"]["amount_cents"] == 10000

        res = client.post(f"/api/audit/{entry.id}/undo")
        assert res.status_code == 404


class TestCreditRoutes:

    def test_pay_across_and_overpayment(self, client, poker_table, player):
        for amount in (5000, 3000):
            _post(client, "/api/buy-ins", {
                "table_id": poker_table.id,
                "player_id": player.id,
                "amount_cents": amount,
                "payment_method": "credit_fiado",
            })

        res = _post(client, f"/api/credits/players/{player.id}/payments", {
            "amount_cents": 6000,
            "payment_method": "pix",
        })
        assert res.status_code == 201
        assert res.get_json()["outstanding_cents"] == 2000

        res = _post(client, f"/api/credits/players/{player.id}/payments", {
            "amount_cents": 2001,
            "payment_method": "pix",
        })
        assert res.status_code == 409
        assert res.get_json()["kind"] == "ExcessPayment"

    def test_receivables(self, client, poker_table, player):
        _post(client, "/api/buy-ins", {
            "table_id": poker_table.id,
            "player_id": player.id,
            "amount_cents": 4000,
            "payment_method": "credit_fiado",
        })

        rows = client.get("/api/credits/receivables").get_json()["players"]
        assert rows[0]["total_unpaid_cents"] == 4000


class TestSessionRoutes:

    def test_summary_and_close(self, client, poker_table, player, cash_session):
        _post(client, "/api/buy-ins", {
            "table_id": poker_table.id,
            "player_id": player.id,
            "amount_cents": 10000,
            "payment_method": "cash",
        })

        summary = client.get(f"/api/sessions/{cash_session.id}/summary").get_json()["summary"]
        assert summary["real_balance_cents"] == 10000
        assert summary["transaction_count"] == 1

        res = _post(client, f"/api/sessions/{cash_session.id}/close", {"notes": "fechado"})
        assert res.status_code == 200
        assert res.get_json()["session"]["final_balance_cents"] == 10000

        res = _post(client, f"/api/sessions/{cash_session.id}/close", {})
        assert res.status_code == 409
        assert res.get_json()["kind"] == "SessionClosed"

    def test_unknown_session_summary(self, client, db_session):
        res = client.get("/api/sessions/12345/summary")
        assert res.status_code == 404
        assert res.get_json()["kind"] == "NoSessionFound"


class TestDealerRoutes:

    def test_payout_over_owed_is_conflict(self, client, dealer):
        _post(client, f"/api/dealers/{dealer.id}/tips", {"amount_cents": 2000})

        res = _post(client, f"/api/dealers/{dealer.id}/payouts", {"amount_cents": 2500})
        assert res.status_code == 409
        assert res.get_json()["kind"] == "OverpaymentRejected"
