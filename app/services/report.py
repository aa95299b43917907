"""Report service — dashboard counters, proposal report and upcoming installments.

Aggregations run in memory over normalized proposals: the OCR payload is
free-form JSON, so grouping keys (insurer, vehicle brand) only exist after
normalization.
"""


import logging
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.domain.document import ProcessedDocument
from app.repositories.document import DocumentRepository
from app.repositories.financial import InstallmentRepository
from app.schemas.proposal import NOT_INFORMED, NormalizedProposal
from app.schemas.report import (
    CountItem,
    DashboardOut,
    InsurerPremium,
    PremiumItem,
    ReportSummary,
    UpcomingInstallment,
)
from app.services.document import summarize_document
from app.services.formatters import (
    capitalize_words,
    format_insurer_name,
    mask_cpf,
    normalize_insurer_key,
    short_insurer_name,
)
from app.services.money import ZERO, format_brl, parse_amount
from app.services.payment_schedule import installment_due_status
from app.services.proposal_normalizer import document_number, normalize_proposal

logger = logging.getLogger(__name__)

# period filter → days back from now (None = no limit)
PERIODS: dict[str, int | None] = {"all": None, "30d": 30, "60d": 60}
DASHBOARD_LATEST = 5
REPORT_LATEST = 10


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive timestamps
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _brand(proposal: NormalizedProposal) -> str:
    make_model = proposal.vehicle.make_model.strip()
    if not make_model or make_model == NOT_INFORMED:
        return NOT_INFORMED
    return make_model.split()[0].upper()


def _counts(counter: Counter, label=lambda key: key) -> list[CountItem]:
    return [
        CountItem(key=key, label=label(key), count=count)
        for key, count in counter.most_common()
    ]


class ReportService:
    def __init__(self, session: AsyncSession):
        self._documents = DocumentRepository(session)
        self._installments = InstallmentRepository(session)

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def dashboard(self) -> DashboardOut:
        total = await self._documents.count()
        latest = await self._documents.latest(DASHBOARD_LATEST)
        return DashboardOut(
            total_documents=total,
            latest=[summarize_document(d) for d in latest],
        )

    # ------------------------------------------------------------------
    # Proposal report
    # ------------------------------------------------------------------

    async def summary(
        self,
        period: str = "all",
        insurer: str | None = None,
        ranking_order: str = "desc",
        now: datetime | None = None,
    ) -> ReportSummary:
        if period not in PERIODS:
            raise ValidationError(f"Unknown period '{period}'. Use one of: {', '.join(PERIODS)}")

        documents = await self._documents.list_all()
        normalized = [(d, normalize_proposal(d)) for d in documents]

        days = PERIODS[period]
        since = (now or datetime.now(timezone.utc)) - timedelta(days=days) if days else None
        insurer_key = normalize_insurer_key(insurer) if insurer else None

        selected: list[tuple[ProcessedDocument, NormalizedProposal]] = []
        for document, proposal in normalized:
            created = _aware(document.created_at)
            if since is not None and (created is None or created < since):
                continue
            if insurer_key and normalize_insurer_key(proposal.proposal.insurer) != insurer_key:
                continue
            selected.append((document, proposal))

        # every insurer seen in the data is listed, even when filtered down to zero
        by_insurer: Counter = Counter({
            normalize_insurer_key(p.proposal.insurer): 0 for _, p in normalized
        })
        by_brand: Counter = Counter()
        by_month: Counter = Counter()
        by_status: Counter = Counter()
        premium_by_insurer: dict[str, Decimal] = defaultdict(lambda: ZERO)
        count_by_insurer: Counter = Counter()
        priced: list[PremiumItem] = []
        total_premium = ZERO

        for document, proposal in selected:
            key = normalize_insurer_key(proposal.proposal.insurer)
            premium = parse_amount(proposal.values.total_price)

            by_insurer[key] += 1
            by_brand[_brand(proposal)] += 1
            if document.created_at is not None:
                by_month[document.created_at.strftime("%Y-%m")] += 1
            by_status[document.status or ""] += 1
            premium_by_insurer[key] += premium
            count_by_insurer[key] += 1
            total_premium += premium

            if premium > 0:
                priced.append(PremiumItem(
                    document_id=document.id,
                    insured_name=proposal.insured.name,
                    insurer=format_insurer_name(proposal.proposal.insurer),
                    premium=premium,
                ))

        ranking = sorted(
            (
                InsurerPremium(
                    key=key,
                    label=capitalize_words(key),
                    count=count_by_insurer[key],
                    total_premium=value,
                )
                for key, value in premium_by_insurer.items()
            ),
            key=lambda item: item.total_premium,
            reverse=ranking_order == "desc",
        )

        return ReportSummary(
            period=period,
            insurer=insurer,
            count=len(selected),
            total_premium=total_premium,
            total_premium_display=format_brl(total_premium),
            by_insurer=_counts(by_insurer, short_insurer_name),
            by_brand=_counts(by_brand),
            by_month=[CountItem(key=m, label=m, count=by_month[m]) for m in sorted(by_month)],
            by_status=_counts(by_status),
            highest_premium=max(priced, key=lambda p: p.premium) if priced else None,
            lowest_premium=min(priced, key=lambda p: p.premium) if priced else None,
            premium_ranking=ranking,
            latest=[summarize_document(d) for d, _ in selected[:REPORT_LATEST]],
        )

    # ------------------------------------------------------------------
    # Upcoming installments
    # ------------------------------------------------------------------

    async def upcoming_installments(
        self,
        start: date | None = None,
        end: date | None = None,
        text: str | None = None,
        today: date | None = None,
    ) -> list[UpcomingInstallment]:
        """Pending installments due between *start* and *end* (default: the next 30 days)."""
        today = today or date.today()
        start = start or today
        end = end or start + timedelta(days=settings.upcoming_window_days)
        if end < start:
            raise ValidationError("The window end must not be before its start")

        needle = (text or "").strip().lower()
        items: list[UpcomingInstallment] = []
        for installment, record, document in await self._installments.upcoming_pending(start, end):
            proposal = normalize_proposal(document)
            info, insured = proposal.proposal, proposal.insured
            if needle and not any(
                needle in value.lower()
                for value in (info.number, info.policy_number, info.insurer, insured.name, insured.cpf)
                if value != NOT_INFORMED
            ):
                continue

            number, _ = document_number(document.document_type, proposal)
            items.append(UpcomingInstallment(
                installment_id=installment.id,
                financial_record_id=record.id,
                document_id=document.id,
                number=installment.number,
                amount=installment.amount,
                due_date=installment.due_date,
                due_status=installment_due_status(installment.due_date, today),
                payment_method=record.payment_method,
                document_type=document.document_type,
                document_number=number,
                insurer=format_insurer_name(info.insurer) if info.insurer != NOT_INFORMED else "",
                insured_name=insured.name if insured.name != NOT_INFORMED else "",
                cpf=mask_cpf(insured.cpf) if insured.cpf != NOT_INFORMED else "",
            ))

        logger.debug("Upcoming installments %s..%s → %d", start, end, len(items))
        return items
