"""v1 router package — all /api/v1/* endpoints live here.

Files:
  documents.py  — OCR documents: list, search, detail, edit, delete + per-document payment schedule
  payments.py   — bulk rebuild of financial data
  reports.py    — dashboard, proposal report, upcoming installments
  quotes.py     — quote PDF text extraction and saved quotes
  uploads.py    — upload queue in front of the OCR webhook

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to app/services/.
"""
