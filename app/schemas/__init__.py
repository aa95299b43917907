"""Pydantic schemas package.

Folder intent:
  common.py     — CamelModel base, Money type, HealthResponse (API schemas inherit CamelModel)
  proposal.py   — NormalizedProposal, the canonical OCR payload (Portuguese keys)
  document.py   — document list / detail / edit models
  financial.py  — financial records, installments, extraction preview, rebuild result
  report.py     — dashboard and report models
  quote.py      — quote extraction and saved quotes
  upload.py     — upload queue items
"""
