"""Social preview endpoints: OG card and share landing page.

Both only render content that passes the share store's signature and
expiry checks; unknown or malformed ids fall back to the default card.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response

from minnebo.api.deps import get_app_config, get_share_store, require_allowed_host
from minnebo.config import Config
from minnebo.sharing.preview import render_og_svg, render_share_page
from minnebo.sharing.store import SecureShareStore, is_valid_share_id

router = APIRouter(tags=["preview"], dependencies=[Depends(require_allowed_host)])

PAGE_CSP = "default-src 'none'; img-src 'self' https:; style-src 'unsafe-inline'"


@router.get("/og-image")
def og_image(id: str | None = None, store: SecureShareStore = Depends(get_share_store)):
    record = store.find(id) if is_valid_share_id(id) else None
    svg = render_og_svg(
        question=record["question"] if record else "",
        answer=record["answer"] if record else "",
    )
    return Response(
        content=svg,
        media_type="image/svg+xml",
        headers={"Cache-Control": "public, max-age=3600"},
    )


@router.get("/redirect", response_class=HTMLResponse)
def share_page(
    share: str | None = None,
    store: SecureShareStore = Depends(get_share_store),
    config: Config = Depends(get_app_config),
):
    share_id = share if is_valid_share_id(share) else None
    record = store.find(share_id) if share_id else None
    html = render_share_page(
        config.public_base_url,
        share_id=share_id,
        question=record["question"] if record else "",
        answer=record["answer"] if record else "",
    )
    return HTMLResponse(content=html, headers={"Content-Security-Policy": PAGE_CSP})
