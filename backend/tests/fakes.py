"""In-memory doubles for the external clients (Sheets, Cloudinary, Gemini)."""
from __future__ import annotations
import re
from typing import Any, Dict, List

_RANGE = re.compile(r"^(?P<tab>[^!]+)!A(?P<first>\d*):N(?P<last>\d*)$")


class _Call:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class _Values:
    def __init__(self, sheet: 'FakeSheetsService'):
        self.sheet = sheet

    def get(self, spreadsheetId, range):
        self.sheet.calls.append(('get', range))

        def run():
            m = _RANGE.match(range)
            first = int(m.group('first') or 1)
            last = int(m.group('last')) if m.group('last') else len(self.sheet.rows) + 1
            # row 1 is the header; data row n lives at rows[n - 2]
            values = [list(r) for r in self.sheet.rows[first - 2:last - 1]]
            return {'values': values} if values else {}
        return _Call(run)

    def append(self, spreadsheetId, range, valueInputOption, body, insertDataOption=None):
        self.sheet.calls.append(('append', range))

        def run():
            self.sheet.rows.extend([list(r) for r in body['values']])
            n = len(self.sheet.rows) + 1
            return {'updates': {'updatedRange': f"{self.sheet.tab}!A{n}:N{n}"}}
        return _Call(run)

    def update(self, spreadsheetId, range, valueInputOption, body):
        self.sheet.calls.append(('update', range))

        def run():
            m = _RANGE.match(range)
            self.sheet.rows[int(m.group('first')) - 2] = list(body['values'][0])
            return {'updatedRows': 1}
        return _Call(run)


class _Spreadsheets:
    def __init__(self, sheet):
        self._values = _Values(sheet)

    def values(self):
        return self._values


class FakeSheetsService:
    """Mimics ``service.spreadsheets().values().get/append/update(...).execute()``."""

    def __init__(self, tab: str = 'ServiceRequests'):
        self.tab = tab
        self.rows: List[List[Any]] = []
        self.calls: List[tuple] = []

    def spreadsheets(self):
        return _Spreadsheets(self)


class FakePhotoStorage:
    def __init__(self):
        self.uploaded: List[str] = []

    def upload(self, stream, filename=''):
        stream.read()
        self.uploaded.append(filename)
        return f"https://res.cloudinary.com/demo/image/upload/service-requests/{len(self.uploaded)}_{filename}"


class _Response:
    def __init__(self, text):
        self.text = text


class _Models:
    def __init__(self, client):
        self.client = client

    def generate_content(self, model, contents):
        self.client.requests.append({'model': model, 'contents': contents})
        if self.client.error:
            raise self.client.error
        return _Response(self.client.reply)


class FakeGenAIClient:
    def __init__(self, reply: str = 'Try restarting the device.', error: Exception = None):
        self.reply = reply
        self.error = error
        self.requests: List[Dict[str, Any]] = []
        self.models = _Models(self)
