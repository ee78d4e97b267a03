import pytest


def test_health(api_client):
    response = api_client.get("/api/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "healthy"
    assert payload["data_loaded"] is True
    assert payload["locations"] == 4


def test_root(api_client):
    assert api_client.get("/").json()["endpoints"]["anomalies"] == "/api/anomalies"


class TestRecords:
    def test_upload_json(self, api_client, make_row):
        response = api_client.post("/api/records", json={"records": [
            make_row("781001", "2024-10-01", adults=10),
            make_row("781001", "2024-10-02", adults=20),
            make_row("781002", "2024-10-02", adults=-3),
        ]})
        assert response.status_code == 200
        assert response.json() == {
            "accepted": 2, "rejected": 1, "locations": 1, "dates": 2,
            "first_date": "2024-10-01", "last_date": "2024-10-02",
        }

    def test_upload_appends(self, api_client, make_row):
        response = api_client.post("/api/records", json={
            "records": [make_row("790001", "2024-10-07", adults=10)],
            "replace": False,
        })
        assert response.json()["locations"] == 5

    def test_upload_csv(self, api_client):
        content = "Date,State,District,Pincode,Age 18 Greater\n01-10-2024,Assam,Kamrup,781001,40\n"
        response = api_client.post("/api/records/csv", json={"content": content})
        assert response.status_code == 200
        assert response.json()["accepted"] == 1

    def test_upload_csv_missing_columns(self, api_client):
        response = api_client.post("/api/records/csv", json={"content": "Date,State\n01-10-2024,Assam\n"})
        assert response.status_code == 400
        payload = response.json()
        assert payload["status_code"] == 400
        assert "Missing required columns" in payload["error"]

    def test_upload_csv_never_reads_server_files(self, api_client, tmp_path):
        server_file = tmp_path / "server_only.csv"
        server_file.write_text("Date,State,District,Pincode,Age 18 Greater\n01-10-2024,Assam,Hidden,999999,4242\n",
                               encoding="utf-8")
        missing_file = tmp_path / "missing.csv"

        for content in (str(server_file), str(missing_file)):
            response = api_client.post("/api/records/csv", json={"content": content})
            assert response.status_code == 400
            assert response.json()["error"] == "No data found in file"

        assert api_client.get("/api/locations/999999").status_code == 404
        assert api_client.get("/api/records/summary").json()["locations"] == 4

    def test_upload_requires_records(self, api_client):
        assert api_client.post("/api/records", json={}).status_code == 422

    def test_summary(self, api_client):
        payload = api_client.get("/api/records/summary").json()
        assert payload["locations"] == 4
        assert payload["days_to_deadline"] == 46


class TestAnalyses:
    def test_anomalies(self, api_client):
        payload = api_client.get("/api/anomalies", params={"method": "growth", "sensitivity": "medium"}).json()
        assert payload["total"] == 1
        anomaly = payload["anomalies"][0]
        assert (anomaly["location_code"], anomaly["confidence"], anomaly["days_to_deadline"]) == ("781001", "Medium", 46)

    def test_anomalies_defaults(self, api_client):
        payload = api_client.get("/api/anomalies").json()
        assert (payload["method"], payload["sensitivity"]) == ("zscore", "medium")

    def test_anomalies_rejects_unknown_method(self, api_client):
        assert api_client.get("/api/anomalies", params={"method": "bogus"}).status_code == 422

    def test_risk_matrix(self, api_client):
        payload = api_client.get("/api/risk/matrix").json()
        assert [m["location_code"] for m in payload["matrix"]][0] == "781003"
        assert sum(payload["weights"].values()) == pytest.approx(1.0)
        assert payload["matrix"][0]["scores"]["border_proximity"] == 100

    def test_policy_correlation(self, api_client):
        payload = api_client.get("/api/risk/policy-correlation").json()
        assert len(payload["correlations"]) == 3

    def test_patterns(self, api_client):
        payload = api_client.get("/api/patterns").json()
        assert set(payload["clusters"]) == {"high_volume", "rapid_growth", "stable", "emerging"}

    def test_forecast(self, api_client):
        payload = api_client.get("/api/forecast").json()
        assert payload["next_30_days"]["trend"] == "Increasing"
        assert [h["location_code"] for h in payload["high_risk_locations"]] == ["781003", "781001"]

    def test_age(self, api_client):
        payload = api_client.get("/api/analytics/age").json()
        assert payload["distribution"]["age_18_plus"]["percentage"] == 100.0

    def test_data_quality(self, api_client):
        payload = api_client.get("/api/analytics/data-quality").json()
        assert payload["completeness"]["score"] == 100.0

    def test_districts(self, api_client):
        payload = api_client.get("/api/analytics/districts").json()
        assert [d["district"] for d in payload["districts"]] == ["Barpeta", "Kamrup"]

    def test_compare(self, api_client):
        response = api_client.get("/api/analytics/compare", params={"codes": "781001,781002"})
        assert [loc["code"] for loc in response.json()["locations"]] == ["781001", "781002"]

        repeated = api_client.get("/api/analytics/compare?codes=781001&codes=781004")
        assert repeated.status_code == 200

    def test_compare_needs_two_codes(self, api_client):
        response = api_client.get("/api/analytics/compare", params={"codes": "781001"})
        assert response.status_code == 400

    def test_compare_unknown_code(self, api_client):
        response = api_client.get("/api/analytics/compare", params={"codes": "781001,000000"})
        assert response.status_code == 404


class TestLocations:
    def test_detail(self, api_client):
        payload = api_client.get("/api/locations/781001").json()
        assert payload["growth_rate"] == 200
        assert payload["border_pushback_is_estimate"] is True
        assert len(payload["series"]) == 6

    def test_unknown(self, api_client):
        response = api_client.get("/api/locations/000000")
        assert response.status_code == 404
        assert response.json()["error"] == "Unknown location code: 000000"


class TestAlerts:
    def test_rules_roundtrip(self, api_client):
        assert api_client.get("/api/alerts/rules").json()["growth_threshold"] == 150

        response = api_client.put("/api/alerts/rules", json={"growth_threshold": 100})
        assert response.status_code == 200
        assert response.json()["growth_threshold"] == 100
        assert response.json()["enrollment_threshold"] == 3000

    def test_invalid_rules_keep_previous(self, api_client):
        response = api_client.put("/api/alerts/rules", json={"days_to_deadline_threshold": 0})
        assert response.status_code == 400
        assert response.json()["detail"]
        assert api_client.get("/api/alerts/rules").json()["days_to_deadline_threshold"] == 60

    def test_unknown_rule_field(self, api_client):
        assert api_client.put("/api/alerts/rules", json={"volume": 1}).status_code == 422

    def test_evaluate_and_history(self, api_client):
        payload = api_client.post("/api/alerts/evaluate").json()
        assert (payload["critical_count"], payload["high_count"]) == (0, 3)

        api_client.post("/api/alerts/evaluate")
        history = api_client.get("/api/alerts/history").json()
        assert history["total"] == 6
        assert history["alerts"][0]["location_code"] == "781001"
