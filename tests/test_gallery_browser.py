"""Drive the generated gallery in a headless browser.

The modal script keeps the open photo in sync with the URL and history, and
restores the grid's scroll position on close; these tests serve a built site
over HTTP and check that behavior in Chromium.
"""

from __future__ import annotations

import functools
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer

import pytest

pytest.importorskip("playwright.sync_api")
from playwright.sync_api import Error as PlaywrightError  # noqa: E402
from playwright.sync_api import expect, sync_playwright  # noqa: E402

from inkfolio import Settings, write_site  # noqa: E402

PHOTO_COUNT = 60


class QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format, *args):
        pass


@pytest.fixture(scope="module")
def site_dir(tmp_path_factory):
    root = tmp_path_factory.mktemp("gallery")
    settings = Settings(
        cloud_name="demo-cloud",
        api_key="key",
        api_secret="secret",
        folder="portfolio",
        site_dir=root / "site",
        cache_path=root / "blur.json",
    )
    images = [
        {
            "id": i,
            "public_id": f"portfolio/piece-{i:02d}",
            "format": "jpg",
            # same aspect as the stubbed JPEG, so lazy loads never shift the grid
            "width": 1600,
            "height": 1000,
            "blur_data_url": None,
        }
        for i in range(PHOTO_COUNT)
    ]
    write_site(images, settings)
    return settings.site_dir


@pytest.fixture(scope="module")
def base_url(site_dir):
    handler = functools.partial(QuietHandler, directory=str(site_dir))
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}/"
    server.shutdown()
    server.server_close()


@pytest.fixture(scope="module")
def browser():
    with sync_playwright() as p:
        try:
            browser = p.chromium.launch(headless=True)
        except PlaywrightError as e:
            pytest.skip(f"chromium is not installed: {e}")
        yield browser
        browser.close()


@pytest.fixture()
def page(browser, jpeg_bytes):
    context = browser.new_context(viewport={"width": 1280, "height": 720})
    page = context.new_page()
    # keep image requests off the network
    page.route(
        "https://res.cloudinary.com/**",
        lambda route: route.fulfill(status=200, content_type="image/jpeg", body=jpeg_bytes),
    )
    yield page
    context.close()


def last_viewed(page):
    return page.evaluate("window.sessionStorage.getItem('lastViewedPhoto')")


def filmstrip_ids(page):
    return page.eval_on_selector_all(
        "#modal-filmstrip button", "els => els.map(e => Number(e.dataset.photoId))"
    )


class TestOpenFromGrid:
    def test_click_pushes_photo_url_and_opens_modal(self, page, base_url) -> None:
        page.goto(base_url)
        expect(page.locator("#modal")).to_be_hidden()

        page.click("#photo-3")

        expect(page).to_have_url(f"{base_url}p/3/")
        expect(page.locator("#modal")).to_be_visible()
        expect(page.locator("#modal-image")).to_have_attribute(
            "src", "https://res.cloudinary.com/demo-cloud/image/upload/c_scale,w_2560/portfolio/piece-03.jpg"
        )
        # same document: the grid is still there
        expect(page.locator("#gallery-grid")).to_have_count(1)

    def test_back_closes_and_forward_reopens(self, page, base_url) -> None:
        page.goto(base_url)
        page.click("#photo-5")
        expect(page.locator("#modal")).to_be_visible()

        page.go_back()
        expect(page).to_have_url(base_url)
        expect(page.locator("#modal")).to_be_hidden()

        page.go_forward()
        expect(page).to_have_url(f"{base_url}p/5/")
        expect(page.locator("#modal")).to_be_visible()

    def test_arrow_keys_step_through_photos(self, page, base_url) -> None:
        page.goto(base_url)
        page.click("#photo-5")
        page.keyboard.press("ArrowRight")
        expect(page).to_have_url(f"{base_url}p/6/")
        page.keyboard.press("ArrowLeft")
        page.keyboard.press("ArrowLeft")
        expect(page).to_have_url(f"{base_url}p/4/")

    def test_no_prev_on_first_or_next_on_last(self, page, base_url) -> None:
        page.goto(f"{base_url}?photoId=0")
        expect(page.locator("#modal-prev")).to_be_hidden()
        expect(page.locator("#modal-next")).to_be_visible()
        page.goto(f"{base_url}?photoId={PHOTO_COUNT - 1}")
        expect(page.locator("#modal-next")).to_be_hidden()


class TestCloseRestoresScroll:
    def test_close_button_scrolls_photo_into_view(self, page, base_url) -> None:
        page.goto(base_url)
        page.click("#photo-50")
        expect(page.locator("#modal")).to_be_visible()
        page.evaluate("window.scrollTo(0, 0)")
        expect(page.locator("#photo-50")).not_to_be_in_viewport()

        page.click("#modal-close")

        expect(page).to_have_url(base_url)
        expect(page.locator("#modal")).to_be_hidden()
        expect(page.locator("#photo-50")).to_be_in_viewport()
        assert last_viewed(page) is None

    def test_escape_closes(self, page, base_url) -> None:
        page.goto(base_url)
        page.click("#photo-1")
        page.keyboard.press("Escape")
        expect(page).to_have_url(base_url)
        expect(page.locator("#modal")).to_be_hidden()


class TestPhotoIdQuery:
    def test_valid_id_opens_modal(self, page, base_url) -> None:
        page.goto(f"{base_url}?photoId=2")
        expect(page.locator("#modal")).to_be_visible()
        expect(page.locator("#modal-image")).to_have_attribute(
            "src", "https://res.cloudinary.com/demo-cloud/image/upload/c_scale,w_2560/portfolio/piece-02.jpg"
        )

    @pytest.mark.parametrize("value", ["999", "abc", "0x1", "1e0", "-1", "1.0", ""])
    def test_malformed_or_unknown_id_leaves_modal_closed(self, page, base_url, value) -> None:
        page.goto(f"{base_url}?photoId={value}")
        page.wait_for_load_state("load")
        expect(page.locator("#modal")).to_be_hidden()
        assert page.evaluate("document.body.classList.contains('modal-open')") is False


class TestFilmstrip:
    def test_shows_ids_within_fifteen(self, page, base_url) -> None:
        page.goto(f"{base_url}?photoId=20")
        expect(page.locator("#modal")).to_be_visible()
        assert filmstrip_ids(page) == list(range(5, 36))
        expect(page.locator("#modal-filmstrip button.active")).to_have_attribute("data-photo-id", "20")

    def test_clipped_at_the_start(self, page, base_url) -> None:
        page.goto(f"{base_url}?photoId=0")
        assert filmstrip_ids(page) == list(range(0, 16))

    def test_click_switches_photo(self, page, base_url) -> None:
        page.goto(f"{base_url}?photoId=20")
        page.click("#modal-filmstrip button[data-photo-id='22']")
        expect(page).to_have_url(f"{base_url}p/22/")
        assert filmstrip_ids(page) == list(range(7, 38))


class TestShareablePage:
    def test_opens_without_navigation(self, page, base_url) -> None:
        page.goto(f"{base_url}p/50/")
        expect(page.locator("#modal")).to_be_visible()
        expect(page.locator("#modal-prev")).to_be_hidden()
        expect(page.locator("#modal-next")).to_be_hidden()
        assert filmstrip_ids(page) == []

    def test_close_goes_to_grid_and_restores_scroll(self, page, base_url) -> None:
        page.goto(f"{base_url}p/50/")
        with page.expect_navigation():
            page.click("#modal-close")

        expect(page).to_have_url(base_url)
        expect(page.locator("#gallery-grid")).to_have_count(1)
        expect(page.locator("#modal")).to_be_hidden()
        expect(page.locator("#photo-50")).to_be_in_viewport()
        assert last_viewed(page) is None
