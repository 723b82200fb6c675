# pyright: reportMissingImports=false
import asyncio
import base64
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Form, HTTPException, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel

from pagediff.config import get_settings
from pagediff.core.capture import capture_page, require_html
from pagediff.core.compare import compare, compare_merged
from pagediff.core.errors import BaselineNotFound, CaptureError, InvalidInput
from pagediff.core.session import ViewerSession
from pagediff.core.stats import signed, summarize_changes
from pagediff.storage.db import (delete_baseline, get_baseline,
                                 get_comparison, init_db, list_baselines,
                                 purge_stale_comparisons, save_baseline,
                                 stash_comparison)
from pagediff.storage.db import vacuum as db_vacuum

TEMPLATES_DIR = Path(__file__).parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)
env.filters["signed"] = signed

app = FastAPI(title="pagediff", version="0.1.0")
settings = get_settings()
logger = logging.getLogger(__name__)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    """Add common security-related HTTP headers to every response.

    Diff panes carry captured page markup, so scripts are never allowed and
    the merged view is only shown inside a sandboxed data: frame.
    """
    resp: Response = await call_next(request)
    csp = (
        "default-src 'none'; "
        "img-src 'self' data:; "
        "style-src 'self' 'unsafe-inline'; "
        "font-src 'self' data:; "
        "frame-src data:; "
        "form-action 'self'; "
        "frame-ancestors 'none'; "
        "base-uri 'self';"
    )
    resp.headers.setdefault("Content-Security-Policy", csp)
    resp.headers.setdefault("X-Frame-Options", "DENY")
    resp.headers.setdefault("X-Content-Type-Options", "nosniff")
    resp.headers.setdefault("Referrer-Policy", "same-origin")
    return resp


class BaselineIn(BaseModel):
    url: str
    html: str


class DiffRequest(BaseModel):
    baseline_html: str
    current_html: str
    url: Optional[str] = None
    query: Optional[str] = None
    detect_modify: Optional[bool] = None


@app.on_event("startup")
async def on_startup():
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await init_db()
    app.state.retention_task = None
    if settings.retention_enabled:
        app.state.retention_task = start_retention_worker()


@app.on_event("shutdown")
async def on_shutdown():
    task = getattr(app.state, "retention_task", None)
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


def start_retention_worker() -> asyncio.Task:
    async def _worker():
        while True:
            try:
                deleted = await purge_stale_comparisons(settings.pending_ttl_minutes)
                if deleted:
                    logger.info("purged %d stale comparisons", deleted)
                    if settings.vacuum_after_purge:
                        await db_vacuum()
            except Exception:
                # housekeeping must not take the app down
                logger.exception("comparison purge failed")
            await asyncio.sleep(settings.retention_interval_hours * 3600)

    loop = asyncio.get_event_loop()
    return loop.create_task(_worker())


def render_error(message: str, status_code: int = 200) -> HTMLResponse:
    template = env.get_template("error.html")
    return HTMLResponse(template.render(message=message), status_code=status_code)


async def _live_html(url: str, html: Optional[str]) -> str:
    if html:
        return html
    page = await capture_page(
        url=url,
        ua=settings.user_agent,
        timeout=settings.request_timeout,
        max_mb=settings.max_response_mb,
        obey_robots=settings.obey_robots,
    )
    return require_html(page)


@app.get("/", response_class=HTMLResponse)
async def index_view():
    template = env.get_template("index.html")
    return HTMLResponse(template.render())


@app.get("/baselines", response_class=HTMLResponse)
async def baselines_view():
    baselines = await list_baselines()
    template = env.get_template("baselines.html")
    return HTMLResponse(template.render(baselines=baselines))


@app.post("/capture")
async def capture_submit(
    url: str = Form(...),
    html: Optional[str] = Form(None),
):
    try:
        page_html = await _live_html(url, html)
    except CaptureError as ex:
        return render_error(f"Failed to capture baseline: {ex.note}")
    await save_baseline(url, page_html)
    return RedirectResponse(url="/baselines", status_code=303)


@app.post("/baselines/delete")
async def baseline_delete_submit(url: str = Form(...)):
    await delete_baseline(url)
    return RedirectResponse(url="/baselines", status_code=303)


@app.post("/api/baselines")
async def baseline_create(payload: BaselineIn):
    if not payload.html:
        raise HTTPException(422, "html must not be empty")
    captured_at = await save_baseline(payload.url, payload.html)
    return {"url": payload.url, "captured_at": captured_at}


@app.get("/api/baselines")
async def baseline_list():
    return {"baselines": await list_baselines()}


@app.delete("/api/baselines")
async def baseline_remove(url: str = Query(...)):
    if not await delete_baseline(url):
        raise HTTPException(404, str(BaselineNotFound(url)))
    return {"deleted": url}


@app.post("/compare")
async def compare_submit(
    url: str = Form(...),
    html: Optional[str] = Form(None),
    view: str = Form("side"),
):
    baseline = await get_baseline(url)
    if not baseline:
        return render_error(
            "No baseline found for this URL. Please capture one first."
        )
    try:
        current_html = await _live_html(url, html)
    except CaptureError as ex:
        return render_error(f"Failed to capture current HTML: {ex.note}")
    comparison_id = await stash_comparison(url, baseline["html"], current_html)
    view = view if view in {"side", "merged"} else "side"
    return RedirectResponse(url=f"/view/{comparison_id}?view={view}", status_code=303)


@app.get("/view/{comparison_id}", response_class=HTMLResponse)
async def comparison_view(
    comparison_id: str,
    view: str = Query(default="side"),
    q: str = Query(default=""),
    at: int = Query(default=-1),
):
    pair = await get_comparison(comparison_id, settings.pending_ttl_minutes)
    if not pair:
        return render_error("Comparison data not found. Please try again.")

    if view == "merged":
        return await _merged_page(pair)

    # the LCS table is pure CPU work; keep it off the event loop
    try:
        result = await run_in_threadpool(
            compare,
            pair["baseline_html"],
            pair["current_html"],
            url=pair["url"],
            detect_modify=settings.detect_attribute_changes,
            max_tokens=settings.max_tokens,
        )
    except InvalidInput as ex:
        return render_error(str(ex))

    session = ViewerSession(
        result.changes, pair["baseline_html"], pair["current_html"]
    )
    session.apply_filter(q)
    session.go_to(at)
    hidden = [c for c in result.changes if c not in session.filtered]

    def step_url(index: int) -> str:
        params = {"view": "side", "q": session.query, "at": index}
        return f"/view/{comparison_id}?{urlencode(params)}"

    template = env.get_template("compare.html")
    html = template.render(
        url=pair["url"],
        result=result,
        summary=summarize_changes(result.changes),
        session=session,
        hidden=hidden,
        prev_url=step_url(session.index - 1) if session.can_previous else None,
        next_url=step_url(session.index + 1) if session.can_next else None,
        merged_url=f"/view/{comparison_id}?view=merged",
    )
    return HTMLResponse(html)


async def _merged_page(pair) -> HTMLResponse:
    try:
        merged = await run_in_threadpool(
            compare_merged,
            pair["baseline_html"],
            pair["current_html"],
            url=pair["url"],
            detect_modify=settings.detect_attribute_changes,
            max_tokens=settings.max_tokens,
        )
    except InvalidInput:
        return render_error(
            "Could not load comparison data. Please capture a new baseline "
            "and try again."
        )
    b64 = base64.b64encode(merged.html.encode("utf-8")).decode("ascii")
    template = env.get_template("merged.html")
    return HTMLResponse(
        template.render(url=pair["url"], merged=merged, frame_src=b64)
    )


@app.post("/api/diff")
async def diff_api(req: DiffRequest):
    detect_modify = req.detect_modify
    if detect_modify is None:
        detect_modify = settings.detect_attribute_changes
    try:
        result = await run_in_threadpool(
            compare,
            req.baseline_html,
            req.current_html,
            url=req.url,
            detect_modify=detect_modify,
            max_tokens=settings.max_tokens,
        )
    except InvalidInput as ex:
        raise HTTPException(422, str(ex))
    body = result.as_dict()
    session = ViewerSession(result.changes, req.baseline_html, req.current_html)
    body["filtered"] = [c.index for c in session.apply_filter(req.query or "")]
    return body
