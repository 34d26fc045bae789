"""
Subscription API endpoints
"""
from datetime import date
from decimal import Decimal
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from substracker.api.deps import get_db, get_current_user_id
from substracker.config import get_settings, today
from substracker.domain.contribution_status import classify_contribution, covered_until
from substracker.domain.cycle import CycleUnit
from substracker.domain.errors import SubscriptionEngineError
from substracker.domain.renewal import days_until_renewal, renewal_status
from substracker.domain.subscription import (
    Category, Contribution, GuestContributor, PaymentMethod, RegisteredContributor, Subscription,
)
from substracker.application.financials import compute_financials
from substracker.application.reporting import compute_aggregate_report
from substracker.application.subscriptions import (
    AddContributorUseCase, CreateSubscriptionUseCase, DeleteSubscriptionUseCase,
    LogContributionPaymentUseCase, RecordChargeUseCase, RemoveContributorUseCase,
    SetSubscriptionActiveUseCase, SubscriptionNotFoundError, SubscriptionValidationError,
    UpdateSubscriptionUseCase,
)
from substracker.infrastructure.db.repository import SubscriptionRepository
from substracker.utils.money import money_str


router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])


# === Request/Response models ===

class CreateSubscriptionRequest(BaseModel):
    name: str
    price: Decimal = Field(gt=0, decimal_places=2)
    cycle: CycleUnit
    category: Category | None = None
    activation_date: date
    first_payment_date: date


class UpdateSubscriptionRequest(BaseModel):
    """Partial update: only fields present in the body are changed"""
    name: str | None = None
    price: Decimal | None = Field(default=None, gt=0, decimal_places=2)
    cycle: CycleUnit | None = None
    category: Category | None = None
    activation_date: date | None = None
    renewal_date: date | None = None


class SetActiveRequest(BaseModel):
    is_active: bool


class RecordChargeRequest(BaseModel):
    charged_on: date
    periods_covered: int = Field(default=1, ge=1)
    payment_method: PaymentMethod | None = None
    note: str = ""


class AddContributorRequest(BaseModel):
    user_id: int | None = None
    guest_name: str | None = None
    amount: Decimal = Field(ge=0, decimal_places=2)
    paid_on: date | None = None
    periods_covered: int = Field(default=1, ge=1)
    payment_method: PaymentMethod | None = None
    note: str = ""

    @model_validator(mode="after")
    def check_contributor(self):
        if (self.user_id is None) == (self.guest_name is None):
            raise ValueError("exactly one of user_id / guest_name must be set")
        return self


class LogPaymentRequest(BaseModel):
    paid_on: date
    periods_covered: int = Field(default=1, ge=1)
    payment_method: PaymentMethod | None = None
    amount: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    note: str | None = None


class SubscriptionResponse(BaseModel):
    id: int
    name: str
    price: str | None
    cycle: str
    category: str | None
    is_active: bool
    activation_date: date | None
    renewal_date: date | None
    renewal_status: str | None
    days_until_renewal: int | None
    is_shared: bool


class FinancialsResponse(BaseModel):
    subscription_id: int
    reference_date: date
    elapsed_periods: int
    gross_historical: str
    total_received: str
    net_historical: str
    net_per_cycle: str
    is_benefit: bool


class ContributionResponse(BaseModel):
    id: int
    contributor_name: str
    is_guest: bool
    amount: str
    paid_on: date | None
    periods_covered: int
    payment_method: str | None
    note: str
    covered_until: date | None
    status: str


class ChargeResponse(BaseModel):
    subscription_id: int
    renewal_date: date


class MonthlyCostResponse(BaseModel):
    subscription_id: int | None
    name: str
    owner_net_monthly: str


class ReportResponse(BaseModel):
    total_monthly_spend: str
    total_monthly_savings: str
    annual_projection: str
    category_totals: dict[str, str]
    top: list[MonthlyCostResponse]
    skipped_count: int
    skipped: list[dict]


# === Helpers ===

def _raise_http(e: Exception) -> NoReturn:
    if isinstance(e, SubscriptionNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, SubscriptionValidationError):
        raise HTTPException(status_code=400, detail=str(e))
    raise HTTPException(status_code=422, detail=str(e))


def _get_subscription(db: Session, subscription_id: int, owner_id: int) -> Subscription:
    sub = SubscriptionRepository(db).get_subscription(subscription_id, owner_id=owner_id)
    if not sub:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return sub


def _cycle_of(sub: Subscription) -> CycleUnit:
    """Stored cycle, or 422 when the row holds an unknown value"""
    try:
        return CycleUnit.parse(sub.cycle)
    except SubscriptionEngineError as e:
        _raise_http(e)


def _subscription_response(sub: Subscription, on: date) -> SubscriptionResponse:
    status = renewal_status(sub, on, get_settings().DUE_SOON_DAYS)
    return SubscriptionResponse(
        id=sub.id,
        name=sub.name,
        price=money_str(sub.price) if sub.price is not None else None,
        cycle=sub.cycle.value if isinstance(sub.cycle, CycleUnit) else str(sub.cycle),
        category=sub.category.value if sub.category else None,
        is_active=sub.is_active,
        activation_date=sub.activation_date,
        renewal_date=sub.renewal_date,
        renewal_status=status.value if status else None,
        days_until_renewal=days_until_renewal(sub, on),
        is_shared=sub.is_shared,
    )


def _contribution_response(c: Contribution, cycle: CycleUnit, on: date) -> ContributionResponse:
    return ContributionResponse(
        id=c.id,
        contributor_name=c.contributor.display_name,
        is_guest=isinstance(c.contributor, GuestContributor),
        amount=money_str(c.amount),
        paid_on=c.paid_on,
        periods_covered=c.periods_covered,
        payment_method=c.payment_method.value if c.payment_method else None,
        note=c.display_note,
        covered_until=covered_until(c, cycle),
        status=classify_contribution(c, cycle, on).value,
    )


# === Endpoints ===

@router.get("/report", response_model=ReportResponse)
def get_report(
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Monthly spend rollup over active subscriptions"""
    subs = SubscriptionRepository(db).load_subscriptions_by_owner(owner_id)
    report = compute_aggregate_report(subs, top_n=get_settings().TOP_RANKING_SIZE)
    return ReportResponse(
        total_monthly_spend=money_str(report.total_monthly_spend),
        total_monthly_savings=money_str(report.total_monthly_savings),
        annual_projection=money_str(report.annual_projection),
        category_totals={k.value: money_str(v) for k, v in report.category_totals.items()},
        top=[
            MonthlyCostResponse(
                subscription_id=c.subscription_id,
                name=c.name,
                owner_net_monthly=money_str(c.owner_net_monthly),
            )
            for c in report.top
        ],
        skipped_count=report.skipped_count,
        skipped=[
            {"subscription_id": s.subscription_id, "name": s.name, "reason": s.reason}
            for s in report.skipped
        ],
    )


@router.get("/", response_model=list[SubscriptionResponse])
def list_subscriptions(
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    q: str | None = None,
    category: Category | None = None,
    is_active: bool | None = None,
):
    """Owner's subscriptions with renewal status (name search, category, active/paused)"""
    on = today()
    subs = SubscriptionRepository(db).load_subscriptions_by_owner(
        owner_id, search=q, category=category, is_active=is_active,
    )
    return [_subscription_response(s, on) for s in subs]


@router.post("/", response_model=SubscriptionResponse)
def create_subscription(
    req: CreateSubscriptionRequest,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create a subscription; the renewal date is caught up to today"""
    on = today()
    try:
        sub_id = CreateSubscriptionUseCase(db).execute(
            owner_id=owner_id,
            name=req.name,
            price=req.price,
            cycle=req.cycle,
            category=req.category,
            activation_date=req.activation_date,
            first_payment_date=req.first_payment_date,
            today=on,
        )
    except SubscriptionValidationError as e:
        _raise_http(e)
    return _subscription_response(_get_subscription(db, sub_id, owner_id), on)


@router.patch("/{subscription_id}", response_model=SubscriptionResponse)
def update_subscription(
    subscription_id: int,
    req: UpdateSubscriptionRequest,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Edit name / price / cycle / category / dates (renewal date is not caught up)"""
    # category may be cleared with an explicit null; other nulls mean "unchanged"
    changes = {
        k: v for k, v in req.model_dump(exclude_unset=True).items()
        if v is not None or k == "category"
    }
    try:
        UpdateSubscriptionUseCase(db).execute(subscription_id, owner_id, **changes)
    except SubscriptionValidationError as e:
        _raise_http(e)
    return _subscription_response(_get_subscription(db, subscription_id, owner_id), today())


@router.post("/{subscription_id}/active", response_model=SubscriptionResponse)
def set_subscription_active(
    subscription_id: int,
    req: SetActiveRequest,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Pause or resume a subscription"""
    try:
        SetSubscriptionActiveUseCase(db).execute(subscription_id, owner_id, req.is_active)
    except SubscriptionValidationError as e:
        _raise_http(e)
    return _subscription_response(_get_subscription(db, subscription_id, owner_id), today())


@router.delete("/{subscription_id}")
def delete_subscription(
    subscription_id: int,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete a subscription with its contributions and charges"""
    try:
        DeleteSubscriptionUseCase(db).execute(subscription_id, owner_id)
    except SubscriptionValidationError as e:
        _raise_http(e)
    return {"status": "deleted"}


@router.get("/{subscription_id}/financials", response_model=FinancialsResponse)
def get_financials(
    subscription_id: int,
    reference_date: date | None = None,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Gross vs net historical cost as of reference_date (default: today)"""
    sub = _get_subscription(db, subscription_id, owner_id)
    on = reference_date or today()
    try:
        fin = compute_financials(sub, list(sub.contributions), on)
    except SubscriptionEngineError as e:
        _raise_http(e)
    return FinancialsResponse(
        subscription_id=sub.id,
        reference_date=on,
        elapsed_periods=fin.elapsed_periods,
        gross_historical=money_str(fin.gross_historical),
        total_received=money_str(fin.total_received),
        net_historical=money_str(fin.net_historical),
        net_per_cycle=money_str(fin.net_per_cycle),
        is_benefit=fin.is_benefit,
    )


@router.get("/{subscription_id}/contributions", response_model=list[ContributionResponse])
def list_contributions(
    subscription_id: int,
    reference_date: date | None = None,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Contributors with up-to-date / pending status"""
    sub = _get_subscription(db, subscription_id, owner_id)
    on = reference_date or today()
    cycle = _cycle_of(sub)
    return [_contribution_response(c, cycle, on) for c in sub.contributions]


@router.post("/{subscription_id}/charges", response_model=ChargeResponse)
def record_charge(
    subscription_id: int,
    req: RecordChargeRequest,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Record the owner's payment and advance the renewal date"""
    try:
        new_renewal = RecordChargeUseCase(db).execute(
            subscription_id=subscription_id,
            owner_id=owner_id,
            charged_on=req.charged_on,
            periods_covered=req.periods_covered,
            payment_method=req.payment_method,
            note=req.note,
        )
    except (SubscriptionValidationError, SubscriptionEngineError) as e:
        _raise_http(e)
    return ChargeResponse(subscription_id=subscription_id, renewal_date=new_renewal)


@router.post("/{subscription_id}/contributions", response_model=ContributionResponse)
def add_contributor(
    subscription_id: int,
    req: AddContributorRequest,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Add a registered user or a guest as contributor"""
    if req.user_id is not None:
        contributor = RegisteredContributor(req.user_id)
    else:
        contributor = GuestContributor(req.guest_name)
    try:
        contribution_id = AddContributorUseCase(db).execute(
            subscription_id=subscription_id,
            owner_id=owner_id,
            contributor=contributor,
            amount=req.amount,
            paid_on=req.paid_on,
            periods_covered=req.periods_covered,
            payment_method=req.payment_method,
            note=req.note,
        )
    except SubscriptionValidationError as e:
        _raise_http(e)
    sub = _get_subscription(db, subscription_id, owner_id)
    contribution = SubscriptionRepository(db).get_contribution(contribution_id)
    return _contribution_response(contribution, _cycle_of(sub), today())


@router.post(
    "/{subscription_id}/contributions/{contribution_id}/payments",
    response_model=ContributionResponse,
)
def log_contribution_payment(
    subscription_id: int,
    contribution_id: int,
    req: LogPaymentRequest,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Log a contributor's payment (replaces their previous payment state)"""
    try:
        LogContributionPaymentUseCase(db).execute(
            subscription_id=subscription_id,
            owner_id=owner_id,
            contribution_id=contribution_id,
            paid_on=req.paid_on,
            periods_covered=req.periods_covered,
            payment_method=req.payment_method,
            amount=req.amount,
            note=req.note,
        )
    except SubscriptionValidationError as e:
        _raise_http(e)
    sub = _get_subscription(db, subscription_id, owner_id)
    contribution = SubscriptionRepository(db).get_contribution(contribution_id)
    return _contribution_response(contribution, _cycle_of(sub), today())


@router.delete("/{subscription_id}/contributions/{contribution_id}")
def remove_contributor(
    subscription_id: int,
    contribution_id: int,
    owner_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Remove a contributor from the subscription"""
    try:
        RemoveContributorUseCase(db).execute(subscription_id, owner_id, contribution_id)
    except SubscriptionValidationError as e:
        _raise_http(e)
    return {"status": "removed"}
