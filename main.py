from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from database import new_session
from models import AccountType, TransactionType
from periods import MonthPeriod, resolve_month
from recurrence import local_today
from scheduler import SchedulerManager
from schemas import (
    AccountIn,
    AccountUpdateIn,
    BudgetCopyIn,
    BudgetIn,
    BudgetUpdateIn,
    GoalContributionIn,
    GoalIn,
    GoalUpdateIn,
    PaidIn,
    PayAllIn,
    TagIn,
    TagUpdateIn,
    TransactionIn,
    TransactionTagsIn,
)
from services import (
    AccountService,
    BudgetService,
    DashboardService,
    GoalService,
    NotFoundError,
    TagService,
    TransactionService,
    account_record,
    budget_record,
    goal_record,
    tag_record,
    transaction_record,
)

app = FastAPI(title="Ledger")


def _load_app_version() -> str:
    try:
        import tomllib
    except ImportError:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except OSError:
        return "unknown"


APP_VERSION = _load_app_version()


def get_db():
    db = new_session()
    try:
        yield db
    finally:
        db.close()


scheduler_manager = SchedulerManager()


@app.on_event("startup")
def startup_event():
    scheduler_manager.start()


@app.on_event("shutdown")
def shutdown_event():
    scheduler_manager.stop()


def month_from_request(request: Request) -> MonthPeriod:
    try:
        return resolve_month(request.query_params.get("month"), today=local_today())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _status_for(exc: ValueError) -> int:
    return 404 if isinstance(exc, NotFoundError) else 400


@app.get("/api/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


@app.get("/api/transactions")
def list_transactions(db: Session = Depends(get_db)):
    return {"items": TransactionService(db).list_all()}


@app.get("/api/transactions/month")
def month_transactions(
    request: Request, tag_id: Optional[int] = None, db: Session = Depends(get_db)
):
    period = month_from_request(request)
    try:
        items = TransactionService(db).for_month(
            period.year, period.month, tag_id=tag_id
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"month": period.key, "items": items}


@app.post("/api/transactions", status_code=201)
def create_transaction(data: TransactionIn, db: Session = Depends(get_db)):
    try:
        rows = TransactionService(db).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"items": [transaction_record(row) for row in rows]}


@app.put("/api/transactions/{transaction_id}")
def update_transaction(
    transaction_id: str, data: TransactionIn, db: Session = Depends(get_db)
):
    try:
        txn = TransactionService(db).update(transaction_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return transaction_record(txn)


@app.delete("/api/transactions/{transaction_id}")
def delete_transaction(
    transaction_id: str, whole_series: bool = False, db: Session = Depends(get_db)
):
    try:
        TransactionService(db).delete(transaction_id, whole_series=whole_series)
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return Response(status_code=204)


@app.post("/api/transactions/{transaction_id}/paid")
def set_transaction_paid(
    transaction_id: str, data: PaidIn, db: Session = Depends(get_db)
):
    try:
        txn = TransactionService(db).set_paid(transaction_id, data.is_paid)
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return transaction_record(txn)


@app.post("/api/transactions/{transaction_id}/skip")
def skip_occurrence(transaction_id: str, db: Session = Depends(get_db)):
    try:
        template = TransactionService(db).skip_occurrence(transaction_id)
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return transaction_record(template)


@app.get("/api/transactions/{transaction_id}/tags")
def list_transaction_tags(transaction_id: str, db: Session = Depends(get_db)):
    try:
        tags = TagService(db).for_transaction(transaction_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"items": [tag_record(tag) for tag in tags]}


@app.put("/api/transactions/{transaction_id}/tags")
def set_transaction_tags(
    transaction_id: str, data: TransactionTagsIn, db: Session = Depends(get_db)
):
    try:
        txn = TransactionService(db).set_tags(transaction_id, data.tag_ids)
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return transaction_record(txn)


@app.post("/api/transactions/pay-all")
def pay_all(data: PayAllIn, db: Session = Depends(get_db)):
    count = TransactionService(db).pay_all(data.payment_method, data.year, data.month)
    return {"updated": count}


@app.get("/api/payment-methods")
def payment_methods(request: Request, db: Session = Depends(get_db)):
    period = month_from_request(request)
    try:
        items = TransactionService(db).payment_method_summary(
            period.year, period.month
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"month": period.key, "items": items}


@app.get("/api/budgets")
def budgets_for_month(request: Request, db: Session = Depends(get_db)):
    period = month_from_request(request)
    try:
        items = BudgetService(db).with_spending(period.year, period.month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"month": period.key, "items": items}


@app.get("/api/budgets/available-categories")
def available_budget_categories(
    request: Request,
    txn_type: TransactionType = Query(TransactionType.expense, alias="type"),
    db: Session = Depends(get_db),
):
    period = month_from_request(request)
    records = TransactionService(db).list_all()
    categories = sorted({txn.category for txn in records if txn.type == txn_type})
    return {
        "month": period.key,
        "items": BudgetService(db).available_categories(
            period.year, period.month, txn_type, categories
        ),
    }


@app.post("/api/budgets", status_code=201)
def create_budget(data: BudgetIn, db: Session = Depends(get_db)):
    try:
        budget = BudgetService(db).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return budget_record(budget)


@app.put("/api/budgets/{budget_id}")
def update_budget(budget_id: int, data: BudgetUpdateIn, db: Session = Depends(get_db)):
    try:
        budget = BudgetService(db).update(budget_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return budget_record(budget)


@app.delete("/api/budgets/{budget_id}")
def delete_budget(budget_id: int, db: Session = Depends(get_db)):
    try:
        BudgetService(db).delete(budget_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.post("/api/budgets/copy")
def copy_budgets(data: BudgetCopyIn, db: Session = Depends(get_db)):
    created = BudgetService(db).copy_to_month(data)
    return {"items": [budget_record(b) for b in created]}


@app.get("/api/goals")
def list_goals(active: bool = False, db: Session = Depends(get_db)):
    service = GoalService(db)
    if active:
        return {"items": [goal_record(g) for g in service.list_active()]}
    return {"items": service.progress(today=local_today())}


@app.post("/api/goals", status_code=201)
def create_goal(data: GoalIn, db: Session = Depends(get_db)):
    return goal_record(GoalService(db).create(data))


@app.put("/api/goals/{goal_id}")
def update_goal(goal_id: int, data: GoalUpdateIn, db: Session = Depends(get_db)):
    try:
        goal = GoalService(db).update(goal_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return goal_record(goal)


@app.post("/api/goals/{goal_id}/add")
def add_to_goal(
    goal_id: int, data: GoalContributionIn, db: Session = Depends(get_db)
):
    try:
        goal = GoalService(db).add_amount(goal_id, data.amount_cents)
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return goal_record(goal)


@app.delete("/api/goals/{goal_id}")
def delete_goal(goal_id: int, db: Session = Depends(get_db)):
    try:
        GoalService(db).delete(goal_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/tags")
def list_tags(db: Session = Depends(get_db)):
    return {"items": TagService(db).list_with_counts()}


@app.post("/api/tags", status_code=201)
def create_tag(data: TagIn, db: Session = Depends(get_db)):
    try:
        tag = TagService(db).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return tag_record(tag)


@app.put("/api/tags/{tag_id}")
def update_tag(tag_id: int, data: TagUpdateIn, db: Session = Depends(get_db)):
    try:
        tag = TagService(db).update(tag_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    return tag_record(tag)


@app.delete("/api/tags/{tag_id}")
def delete_tag(tag_id: int, db: Session = Depends(get_db)):
    try:
        TagService(db).delete(tag_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/accounts")
def list_accounts(active: bool = False, db: Session = Depends(get_db)):
    service = AccountService(db)
    accounts = service.list_active() if active else service.list_all()
    return {"items": [account_record(a) for a in accounts]}


@app.get("/api/accounts/types")
def account_types():
    return {"items": [t.value for t in AccountType]}


@app.post("/api/accounts", status_code=201)
def create_account(data: AccountIn, db: Session = Depends(get_db)):
    return account_record(AccountService(db).create(data))


@app.put("/api/accounts/{account_id}")
def update_account(
    account_id: int, data: AccountUpdateIn, db: Session = Depends(get_db)
):
    try:
        account = AccountService(db).update(account_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return account_record(account)


@app.post("/api/accounts/{account_id}/archive")
def archive_account(account_id: int, db: Session = Depends(get_db)):
    try:
        account = AccountService(db).set_active(account_id, False)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return account_record(account)


@app.post("/api/accounts/{account_id}/unarchive")
def unarchive_account(account_id: int, db: Session = Depends(get_db)):
    try:
        account = AccountService(db).set_active(account_id, True)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return account_record(account)


@app.delete("/api/accounts/{account_id}")
def delete_account(account_id: int, db: Session = Depends(get_db)):
    try:
        AccountService(db).delete(account_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/overview")
def overview(request: Request, db: Session = Depends(get_db)):
    period = month_from_request(request)
    try:
        return DashboardService(db).month_overview(period.year, period.month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/analytics")
def analytics(year: Optional[int] = None, db: Session = Depends(get_db)):
    try:
        return DashboardService(db).analytics(year)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
