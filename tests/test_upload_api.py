"""
Tests for the HTTP layer: POST /upload status codes and bodies, GET / form.
"""

import io
import os
import tempfile
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from openpyxl import Workbook

from excel_import.api.dependencies import get_ingestion_service
from excel_import.main import app
from excel_import.services.ingestion_service import IngestionService
from excel_import.services.persister import BulkPersister
from fakes import FakeCollection

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def workbook_bytes(header, rows):
    wb = Workbook()
    ws = wb.active
    ws.append(header)
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


class TestUploadEndpoint(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.env = patch.dict(os.environ, {"UPLOAD_DIR": self.tmp.name})
        self.env.start()
        self.collection = FakeCollection()
        app.dependency_overrides[get_ingestion_service] = lambda: IngestionService(
            persister=BulkPersister(self.collection)
        )
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.env.stop()
        self.tmp.cleanup()

    def _post(self, content, filename="people.xlsx"):
        return self.client.post("/upload", files={"excelFile": (filename, content, XLSX)})

    def test_upload_inserts_rows(self):
        content = workbook_bytes(["name", "age", "email"], [["Ana", 30, "ana@x.com"], ["Bo", 25, "bo@x.com"]])

        response = self._post(content)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            "message": "Data successfully transferred to MongoDB.",
            "insertedCount": 2,
        })
        self.assertEqual(len(self.collection.docs), 2)
        self.assertEqual(os.listdir(self.tmp.name), [])

    def test_reupload_reports_duplicate(self):
        content = workbook_bytes(["name", "age", "email"], [["Ana", 30, "ana@x.com"], ["Bo", 25, "bo@x.com"]])
        self._post(content)

        response = self._post(content)

        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertEqual(body["message"], "An error occurred during the data transfer.")
        self.assertIn("duplicate email", body["error"])
        self.assertEqual(len(self.collection.docs), 2)
        self.assertEqual(os.listdir(self.tmp.name), [])

    def test_invalid_row_returns_500_with_detail(self):
        content = workbook_bytes(["name", "age", "email"], [["Ana", "thirty", "ana@x.com"]])

        response = self._post(content)

        self.assertEqual(response.status_code, 500)
        self.assertIn("Row 1", response.json()["error"])
        self.assertEqual(self.collection.docs, [])
        self.assertEqual(os.listdir(self.tmp.name), [])

    def test_garbage_file_returns_500(self):
        response = self._post(b"definitely not a spreadsheet")

        self.assertEqual(response.status_code, 500)
        self.assertIn("error", response.json())
        self.assertEqual(os.listdir(self.tmp.name), [])

    def test_missing_file_returns_400(self):
        response = self.client.post("/upload")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "No file uploaded."})

    def test_text_field_instead_of_file_returns_400(self):
        response = self.client.post("/upload", data={"excelFile": "hello"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "No file uploaded."})
        self.assertEqual(os.listdir(self.tmp.name), [])

    def test_wrong_field_name_returns_400(self):
        content = workbook_bytes(["name", "age", "email"], [["Ana", 30, "ana@x.com"]])

        response = self.client.post("/upload", files={"file": ("people.xlsx", content, XLSX)})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.collection.docs, [])


class TestStaticRoutes(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)

    def test_root_serves_upload_form(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertIn('name="excelFile"', response.text)

    def test_health(self):
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
