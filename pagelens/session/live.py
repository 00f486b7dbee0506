"""Wire an OverlaySession to a live Playwright page."""

from __future__ import annotations

from pagelens.browser.layer import ActionStatus, BrowserLayer
from pagelens.config.settings import PagelensConfig
from pagelens.session.overlay import OverlaySession


async def start_live_session(
    url: str,
    config: PagelensConfig | None = None,
    *,
    browser: BrowserLayer | None = None,
) -> tuple[OverlaySession, BrowserLayer]:
    """Open ``url``, render the first record and start following page mutations.

    The caller owns both objects and must ``close()`` the session and
    ``stop()`` the browser. The browser is stopped here if any step fails.
    """
    config = config or PagelensConfig()
    browser = browser or BrowserLayer(config.browser)
    await browser.start()
    try:
        result = await browser.navigate(url)
        if result.status is not ActionStatus.SUCCESS:
            raise RuntimeError(result.detail)
        session = OverlaySession(browser, clipboard=browser, config=config)
        await session.render()
        await browser.observe_mutations(session.notify_mutation)
    except BaseException:
        await browser.stop()
        raise
    return session, browser
