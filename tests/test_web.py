import unittest

from loan_finance_web.app import create_app


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app(
            {"TESTING": True, "QUOTATION_DATABASE_URL": "sqlite://", "QUOTATION_MAX_PER_USER": 3}
        )
        self.client = self.app.test_client()


class TestCalculationEndpoints(ApiTestCase):
    def test_emi(self):
        response = self.client.post("/api/emi", json={"principal": "₹5,00,000", "rate": 10.5, "tenure": 60})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["emi"], 10747)
        self.assertEqual(body["total_payment"], 10747 * 60)
        self.assertEqual(body["rate_type"], "Reducing")

    def test_emi_prefers_breakup_total(self):
        response = self.client.post(
            "/api/emi",
            json={
                "approved_amount": 500000,
                "breakup": {"netLoanAmount": 100000, "creditAssuredFinance": 10000},
                "annual_rate_percent": 0,
                "tenure_months": 11,
            },
        )
        self.assertEqual(response.get_json()["emi"], 10000)

    def test_partial_form_does_not_fail(self):
        response = self.client.post("/api/emi", json={"principal": "", "rate": "abc"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["emi"], 0)

    def test_rejects_non_json(self):
        response = self.client.post("/api/emi", data="principal=1", content_type="text/plain")
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.get_json())

    def test_schedule(self):
        response = self.client.post(
            "/api/schedule",
            json={"principal": 100000, "rate": 10, "tenure": 12, "rate_type": "Flat", "first_emi_date": "2024-01-31"},
        )
        body = response.get_json()
        self.assertEqual(len(body["schedule"]), 12)
        self.assertEqual(body["schedule"][1]["due_date"], "2024-02-29")
        self.assertEqual(body["schedule"][-1]["outstanding_balance_after"], 0)
        self.assertEqual(body["summary"]["emi"], 9167)
        self.assertEqual(len(body["yearly"]), 1)

    def test_live_outstanding(self):
        response = self.client.post(
            "/api/outstanding", json={"principal": 100000, "rate": 12, "tenure": 12, "first_emi_date": "2000-01-01"}
        )
        body = response.get_json()
        self.assertEqual(body["outstanding"], 0)
        self.assertEqual(body["months_remaining"], 0)
        self.assertEqual(body["progress_percentage"], 100)

        response = self.client.post("/api/outstanding", json={"principal": 100000, "rate": 12, "tenure": 12})
        body = response.get_json()
        self.assertEqual(body["outstanding"], 100000)
        self.assertEqual(body["progress_percentage"], 0)

    def test_actual_outstanding(self):
        response = self.client.post(
            "/api/outstanding/actual",
            json={
                "principal": 30000,
                "rate": 12,
                "tenure": 3,
                "disbursement_date": "2024-01-05",
                "payments": [{"date": "2024-01-05", "amount": 10201}] * 3,
            },
        )
        body = response.get_json()
        self.assertEqual(body["outstanding"], 0)
        self.assertEqual(body["paid_installments"], 3)
        self.assertEqual(body["total_paid"], 30603)
        self.assertNotIn("schedule", body)

    def test_actual_outstanding_rejects_bad_payments(self):
        response = self.client.post(
            "/api/outstanding/actual", json={"principal": 30000, "rate": 12, "tenure": 3, "payments": "lots"}
        )
        self.assertEqual(response.status_code, 400)

    def test_breakup(self):
        response = self.client.post(
            "/api/breakup",
            json={"components": {"net_loan_amount": 100000, "credit_assured_finance": 10000}, "approved_amount": 500000},
        )
        self.assertEqual(response.get_json()["total"], 110000)

        response = self.client.post("/api/breakup", json={"approved_amount": "₹5,00,000"})
        body = response.get_json()
        self.assertEqual(body["total"], 500000)
        self.assertEqual(body["components"]["net_loan_amount"], 500000)
        self.assertEqual(body["components"]["insurance_finance"], 0)


class TestQuotations(ApiTestCase):
    def _create(self, name="Ravi", principal=500000):
        return self.client.post(
            "/api/quotations",
            json={"customer_name": name, "principal": principal, "rate": 10.5, "tenure": 60},
        )

    def test_create_get_and_remove(self):
        response = self._create()
        self.assertEqual(response.status_code, 201)
        quotation = response.get_json()
        self.assertEqual(quotation["customer_name"], "Ravi")
        self.assertEqual(quotation["summary"]["emi"], 10747)
        self.assertEqual(quotation["terms"]["tenure_months"], 60)

        listed = self.client.get("/api/quotations").get_json()
        self.assertEqual([q["id"] for q in listed], [quotation["id"]])

        fetched = self.client.get(f"/api/quotations/{quotation['id']}")
        self.assertEqual(fetched.status_code, 200)

        deleted = self.client.delete(f"/api/quotations/{quotation['id']}")
        self.assertEqual(deleted.status_code, 204)
        self.assertEqual(self.client.get(f"/api/quotations/{quotation['id']}").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/quotations/{quotation['id']}").status_code, 404)

    def test_quotations_are_per_user(self):
        quotation = self._create().get_json()
        other = self.app.test_client()
        self.assertEqual(other.get("/api/quotations").get_json(), [])
        self.assertEqual(other.get(f"/api/quotations/{quotation['id']}").status_code, 404)

    def test_old_quotations_are_trimmed(self):
        for i in range(5):
            self._create(name=f"Customer {i}", principal=100000 + i)
        self.assertEqual(len(self.client.get("/api/quotations").get_json()), 3)


if __name__ == "__main__":
    unittest.main()
