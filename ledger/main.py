from contextlib import asynccontextmanager
from dataclasses import asdict
import csv
from io import StringIO

from fastapi import FastAPI, Form, HTTPException, Query, Request
from fastapi.responses import Response

from .actions import TransactionActions
from .calculator import (
    calculate_category_summary,
    calculate_date_range_summary,
    calculate_summary,
    group_by_date,
)
from .categorizer import Categorizer
from .db import init_db
from .errors import NotFoundError, PersistenceError, StorageError, ValidationError
from .formatting import EXPORT_FIELDS, format_for_export, format_summary, format_transaction_group
from .logging_setup import configure_logging, get_logger
from .logic import parse_amount, parse_tags, validate_type
from .models import TransactionFilter
from .repository import TransactionRepository
from .settings import Settings, get_settings
from .storage import SqliteKeyValueStore
from .store import TransactionStore
from .timeutil import month_range

_logger = get_logger("ledger.main")


def _resolve_range(start: str | None, end: str | None) -> tuple[str, str]:
    default_start, default_end = month_range()
    return start or default_start, end or default_end


def _store(request: Request) -> TransactionStore:
    return request.app.state.store


def _actions(request: Request) -> TransactionActions:
    return request.app.state.actions


def _raise_http(exc: Exception) -> None:
    if isinstance(exc, ValidationError):
        raise HTTPException(status_code=400, detail=exc.errors or str(exc)) from exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, PersistenceError):
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    raise exc


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        init_db(settings)
        kv = SqliteKeyValueStore(settings.db_path, namespace=settings.namespace)
        store = TransactionStore(
            TransactionRepository(kv), seed_sample_data=settings.seed_sample_data
        )
        categorizer = Categorizer()
        await categorizer.load(kv)
        await store.load_transactions()
        app.state.kv = kv
        app.state.store = store
        app.state.categorizer = categorizer
        app.state.actions = TransactionActions(store, categorizer)
        _logger.info("Ledger ready at %s", settings.db_path)
        yield

    app = FastAPI(lifespan=lifespan)

    @app.get("/transactions")
    async def list_transactions(
        request: Request,
        type: str | None = None,
        category: list[str] | None = Query(default=None),
        start: str | None = None,
        end: str | None = None,
        min_amount: float | None = None,
        max_amount: float | None = None,
        tag: list[str] | None = Query(default=None),
        q: str | None = None,
    ):
        query = TransactionFilter(
            type=type,
            categories=tuple(category) if category else None,
            date_from=start,
            date_to=end,
            min_amount=min_amount,
            max_amount=max_amount,
            tags=tuple(tag) if tag else None,
            search_term=q.strip() if q and q.strip() else None,
        )
        return [t.to_dict() for t in query.apply(_store(request).transactions)]

    @app.post("/transactions", status_code=201)
    async def create_transaction(
        request: Request,
        amount: str = Form(...),
        description: str = Form(...),
        type: str = Form(...),
        category: str | None = Form(default=None),
        date: str | None = Form(default=None),
        tags: str | None = Form(default=None),
        notes: str | None = Form(default=None),
        location: str | None = Form(default=None),
    ):
        try:
            valid_type = validate_type(type)
            parsed_amount = parse_amount(amount)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        fields = {
            "amount": parsed_amount,
            "description": description,
            "type": valid_type,
            "date": date or None,
            "tags": parse_tags(tags),
            "notes": notes.strip() if notes and notes.strip() else None,
            "location": location or None,
        }
        try:
            if category:
                transaction = await _store(request).add_transaction({**fields, "category": category})
            else:
                result = await _actions(request).add_with_smart_category(**fields)
                transaction = result.transaction
        except (ValidationError, PersistenceError) as exc:
            _raise_http(exc)
        return transaction.to_dict()

    @app.post("/transactions/{txn_id}/update")
    async def update_transaction(
        txn_id: str,
        request: Request,
        amount: str | None = Form(default=None),
        description: str | None = Form(default=None),
        category: str | None = Form(default=None),
        type: str | None = Form(default=None),
        date: str | None = Form(default=None),
        tags: str | None = Form(default=None),
        notes: str | None = Form(default=None),
    ):
        changes = {}
        try:
            if amount is not None:
                changes["amount"] = parse_amount(amount)
            if type is not None:
                changes["type"] = validate_type(type)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        for name, value in (("description", description), ("category", category), ("date", date)):
            if value is not None:
                changes[name] = value
        if tags is not None:
            changes["tags"] = parse_tags(tags)
        if notes is not None:
            changes["notes"] = notes.strip() or None

        actions = _actions(request)
        try:
            updated = await actions.update_and_learn(txn_id, changes)
        except (ValidationError, NotFoundError, PersistenceError) as exc:
            _raise_http(exc)
        if "category" in changes:
            try:
                await actions.categorizer.save(request.app.state.kv)
            except StorageError:
                _logger.warning("Could not persist learned keywords", exc_info=True)
        return updated.to_dict()

    @app.post("/transactions/{txn_id}/delete", status_code=204)
    async def delete_transaction(txn_id: str, request: Request):
        try:
            await _store(request).delete_transaction(txn_id)
        except PersistenceError as exc:
            _raise_http(exc)
        return Response(status_code=204)

    @app.get("/transactions/grouped")
    async def grouped_transactions(request: Request, start: str | None = None, end: str | None = None):
        resolved_start, resolved_end = _resolve_range(start, end)
        transactions = _store(request).get_transactions_by_date_range(resolved_start, resolved_end)
        return [format_transaction_group(group) for group in group_by_date(transactions)]

    @app.get("/stats")
    async def quick_stats(request: Request):
        return asdict(_store(request).get_quick_stats())

    @app.get("/summary")
    async def summary(request: Request, start: str | None = None, end: str | None = None):
        resolved_start, resolved_end = _resolve_range(start, end)
        transactions = _store(request).get_transactions_by_date_range(resolved_start, resolved_end)
        totals = calculate_summary(transactions)
        return {
            "start": resolved_start,
            "end": resolved_end,
            "summary": asdict(totals),
            "display": format_summary(totals),
            "by_category": [asdict(c) for c in calculate_category_summary(transactions)],
        }

    @app.get("/trend")
    async def trend(
        request: Request,
        bucket: str = "day",
        start: str | None = None,
        end: str | None = None,
    ):
        resolved_start, resolved_end = _resolve_range(start, end)
        transactions = _store(request).get_transactions_by_date_range(resolved_start, resolved_end)
        try:
            series = calculate_date_range_summary(transactions, bucket)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return [asdict(point) for point in series]

    @app.get("/budget")
    async def budget(
        request: Request,
        category: str,
        amount: float,
        start: str | None = None,
        end: str | None = None,
    ):
        resolved_start, resolved_end = _resolve_range(start, end)
        try:
            progress = _store(request).get_budget_progress(
                category, amount, resolved_start, resolved_end
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return asdict(progress)

    @app.get("/suggest")
    async def suggest(request: Request, description: str, amount: float | None = None, limit: int = 3):
        categorizer = request.app.state.categorizer
        category = categorizer.suggest_category(description, amount)
        return {
            "category": category,
            "confidence": categorizer.get_confidence_score(description, category),
            "options": [asdict(o) for o in categorizer.get_category_options(description, limit)],
        }

    @app.get("/export.csv")
    async def export_csv(request: Request, start: str | None = None, end: str | None = None):
        resolved_start, resolved_end = _resolve_range(start, end)
        transactions = _store(request).get_transactions_by_date_range(resolved_start, resolved_end)

        output = StringIO()
        writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS)
        writer.writeheader()
        for txn in transactions:
            writer.writerow(format_for_export(txn))

        body = "\ufeff" + output.getvalue()
        filename = f"ledger-{resolved_start}-to-{resolved_end}.csv"
        return Response(
            content=body,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="127.0.0.1", port=8000)
