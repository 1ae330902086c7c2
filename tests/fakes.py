"""
fakes.py
Test doubles shared by the ingestion tests: an in-memory stand-in for a pymongo
collection with a unique email index, and a helper that writes .xlsx files.
"""

from bson import ObjectId
from openpyxl import Workbook
from pymongo.errors import BulkWriteError
from pymongo.results import InsertManyResult


class FakeCollection:
    """Enough of pymongo's Collection for BulkPersister, unique on email."""

    def __init__(self, name="Data"):
        self.name = name
        self.docs = []
        self.insert_calls = 0
        self.fail_with = None  # exception raised by insert_many
        self.concurrent_docs = []  # written by "another upload" right before our insert

    def emails(self):
        return sorted(doc["email"] for doc in self.docs)

    def find(self, filter=None, projection=None):
        wanted = set(filter["email"]["$in"]) if filter else None
        for doc in self.docs:
            if wanted is None or doc["email"] in wanted:
                yield {"email": doc["email"]}

    def insert_many(self, documents, ordered=True):
        self.insert_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        self.docs.extend(self.concurrent_docs)
        self.concurrent_docs = []

        inserted_ids = []
        for index, doc in enumerate(documents):
            doc.setdefault("_id", ObjectId())
            if doc["email"] in {d["email"] for d in self.docs}:
                raise BulkWriteError({
                    "writeErrors": [{
                        "index": index,
                        "code": 11000,
                        "errmsg": f"E11000 duplicate key error collection: test.{self.name} index: email_unique",
                        "keyValue": {"email": doc["email"]},
                        "op": doc,
                    }],
                    "writeConcernErrors": [],
                    "nInserted": index,
                    "nUpserted": 0,
                    "nMatched": 0,
                    "nModified": 0,
                    "nRemoved": 0,
                    "upserted": [],
                })
            self.docs.append(dict(doc))
            inserted_ids.append(doc["_id"])
        return InsertManyResult(inserted_ids, True)

    def delete_many(self, filter):
        ids = set(filter["_id"]["$in"])
        self.docs = [doc for doc in self.docs if doc.get("_id") not in ids]


def write_sheet(path, header, rows, sheet_title="Sheet1"):
    """Write header + rows to the first sheet of a new workbook at path."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    if header is not None:
        ws.append(list(header))
    for row in rows:
        ws.append(list(row))
    wb.save(path)
    return path
