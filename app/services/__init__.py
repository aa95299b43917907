"""Services package — all business logic lives here, never in routers.

Files:
  financial_extraction.py — payment data recovery from loosely shaped OCR JSON
  payment_schedule.py     — due dates, installment values, due status
  money.py                — pt-BR amount parsing / formatting
  proposal_normalizer.py  — OCR rows → NormalizedProposal
  formatters.py           — names, insurers, brokers, CPF masking
  text_extraction.py      — label heuristics over quote text
  parser.py               — PDF upload validation and text extraction (pdfplumber)
  document.py / payment.py / report.py / quote.py — per-feature services
  upload_queue.py         — sequential uploads to the OCR webhook

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
