# /// script
# dependencies = ["pillow", "jinja2", "httpx"]
# ///
"""
Inkfolio: Build a static portfolio gallery from a Cloudinary folder.

Usage:
    CLOUDINARY_URL=cloudinary://<key>:<secret>@<cloud> \\
    CLOUDINARY_FOLDER=portfolio \\
    uv run --script inkfolio.py

Outputs a static site to ./public_html/ (override with INKFOLIO_SITE_DIR).
"""

import base64
import io
import json
import os
import shutil
import xml.etree.ElementTree as ET
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit

import httpx
from PIL import Image, ImageFilter
from jinja2 import Environment
from markupsafe import Markup

_jinja_env = Environment(autoescape=True)
Template = _jinja_env.from_string

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

SITE_DIR = Path("public_html")
CACHE_PATH = Path("_cache") / "blur_placeholders.json"

SITE_TITLE = "Rabbit Rieken"
SITE_SUBTITLE = "Tattoo Portfolio"
CONTACT_EMAIL = "bunny@soulshine.ink"
CONTACT_PHONE = "678-523-4591"
FOOTER_OWNER = "Soulshine.ink"
FOOTER_URL = "https://www.soulshine.ink"
FOOTER_YEAR = 2023

API_BASE = "https://api.cloudinary.com/v1_1"
DELIVERY_BASE = "https://res.cloudinary.com"
MAX_RESULTS = 400

GRID_WIDTH = 720
GRID_SRCSET_WIDTHS = (360, 720, 1080)
GRID_SIZES = "(max-width: 640px) 100vw, (max-width: 1280px) 50vw, (max-width: 1536px) 33vw, 25vw"
MODAL_WIDTH = 2560
FILMSTRIP_WIDTH = 180

BLUR_SOURCE_TRANSFORM = "f_jpg,w_8,q_70"
BLUR_WIDTH = 8
BLUR_RADIUS = 1
BLUR_QUALITY = 70
BLUR_WORKERS = 8

HTTP_TIMEOUT = 30


class GalleryConfigError(Exception):
    """Raised when the environment does not describe a usable gallery."""


@dataclass(frozen=True)
class Settings:
    cloud_name: str
    api_key: str
    api_secret: str
    folder: str
    site_dir: Path = SITE_DIR
    base_url: str = ""
    cache_path: Path = CACHE_PATH

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Read Cloudinary credentials and output locations from the environment.

        CLOUDINARY_URL supplies all three credentials at once; the individual
        CLOUDINARY_CLOUD_NAME / _API_KEY / _API_SECRET variables override it.
        """
        env = os.environ if environ is None else environ

        cloud_name = api_key = api_secret = ""
        url = env.get("CLOUDINARY_URL", "").strip()
        if url:
            parts = urlsplit(url)
            if parts.scheme != "cloudinary":
                raise GalleryConfigError(
                    f"CLOUDINARY_URL must start with cloudinary://, got {parts.scheme or 'nothing'}"
                )
            # hostname would lowercase the cloud name
            cloud_name = parts.netloc.rpartition("@")[2]
            api_key = unquote(parts.username or "")
            api_secret = unquote(parts.password or "")

        cloud_name = env.get("CLOUDINARY_CLOUD_NAME", "").strip() or cloud_name
        api_key = env.get("CLOUDINARY_API_KEY", "").strip() or api_key
        api_secret = env.get("CLOUDINARY_API_SECRET", "").strip() or api_secret
        folder = env.get("CLOUDINARY_FOLDER", "").strip().strip("/")

        missing = [
            name for name, value in (
                ("CLOUDINARY_CLOUD_NAME", cloud_name),
                ("CLOUDINARY_API_KEY", api_key),
                ("CLOUDINARY_API_SECRET", api_secret),
                ("CLOUDINARY_FOLDER", folder),
            )
            if not value
        ]
        if missing:
            raise GalleryConfigError(f"missing environment variables: {', '.join(missing)}")

        return cls(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            folder=folder,
            site_dir=Path(env.get("INKFOLIO_SITE_DIR") or SITE_DIR),
            base_url=env.get("INKFOLIO_BASE_URL", "").strip(),
            cache_path=Path(env.get("INKFOLIO_CACHE") or CACHE_PATH),
        )


# ---------------------------------------------------------------------------
# Step 1: Search the media folder
# ---------------------------------------------------------------------------

def search_expression(folder: str) -> str:
    return f"folder:{folder}/*"


def search_folder(client: httpx.Client, settings: Settings) -> list[dict]:
    """Query the Cloudinary Search API for every asset in the portfolio folder.

    Results come back sorted by public_id, descending; the order is
    kept as-is because descriptor ids are assigned from it.
    """
    resp = client.post(
        f"{API_BASE}/{settings.cloud_name}/resources/search",
        auth=(settings.api_key, settings.api_secret),
        json={
            "expression": search_expression(settings.folder),
            "sort_by": [{"public_id": "desc"}],
            "max_results": MAX_RESULTS,
        },
    )
    resp.raise_for_status()
    return resp.json().get("resources") or []


def reduce_resources(resources: list[dict]) -> list[dict]:
    """Strip search results down to what the page needs, numbering them from 0."""
    return [
        {
            "id": i,
            "height": r["height"],
            "width": r["width"],
            "public_id": r["public_id"],
            "format": r["format"],
        }
        for i, r in enumerate(resources)
    ]


def image_url(cloud_name: str, image: dict, transform: str | None = None) -> str:
    """Delivery URL for an image, optionally through a Cloudinary transformation."""
    prefix = f"{DELIVERY_BASE}/{cloud_name}/image/upload"
    if transform:
        prefix = f"{prefix}/{transform}"
    return f"{prefix}/{image['public_id']}.{image['format']}"


def scaled_url(cloud_name: str, image: dict, width: int) -> str:
    return image_url(cloud_name, image, f"c_scale,w_{width}")


# ---------------------------------------------------------------------------
# Step 2: Blur placeholders
# ---------------------------------------------------------------------------

def load_json(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


class JsonCache:
    """Placeholder data URLs from earlier builds, keyed by '<public_id>.<format>'."""

    def __init__(self, path: Path):
        self.path = path
        self.data = load_json(path)

    def get(self, key: str, default=None):
        return self.data.get(key, default)

    def set(self, key: str, value) -> None:
        self.data[key] = value

    def prune(self, keys) -> None:
        """Drop entries whose key is not in keys."""
        keep = set(keys)
        self.data = {k: v for k, v in self.data.items() if k in keep}

    def persist(self) -> None:
        save_json(self.path, self.data)


def cache_key(image: dict) -> str:
    return f"{image['public_id']}.{image['format']}"


def make_blur_data_url(data: bytes) -> str:
    """Turn image bytes into a tiny blurred JPEG data URL."""
    with Image.open(io.BytesIO(data)) as img:
        img = img.convert("RGB")
        if img.width > BLUR_WIDTH:
            height = max(1, round(img.height * BLUR_WIDTH / img.width))
            img = img.resize((BLUR_WIDTH, height), Image.LANCZOS)
        img = img.filter(ImageFilter.GaussianBlur(BLUR_RADIUS))
        buf = io.BytesIO()
        img.save(buf, "JPEG", quality=BLUR_QUALITY, optimize=True)
    return "data:image/jpeg;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def fetch_blur_placeholder(client: httpx.Client, cloud_name: str, image: dict) -> str:
    resp = client.get(image_url(cloud_name, image, BLUR_SOURCE_TRANSFORM))
    resp.raise_for_status()
    return make_blur_data_url(resp.content)


def attach_blur_placeholders(images: list[dict], client: httpx.Client,
                             settings: Settings, cache: JsonCache):
    """Set blur_data_url on every image, fetching only what the cache lacks."""
    pending = []
    for image in images:
        cached = cache.get(cache_key(image))
        image["blur_data_url"] = cached
        if not cached:
            pending.append(image)

    print(f"  {len(images) - len(pending)} placeholders cached, {len(pending)} to fetch")
    if pending:
        _fetch_pending(pending, client, settings, cache)

    # images removed from the folder no longer need a placeholder
    cache.prune(cache_key(image) for image in images)
    cache.persist()


def _fetch_pending(pending: list[dict], client: httpx.Client,
                   settings: Settings, cache: JsonCache):
    total = len(pending)
    with ThreadPoolExecutor(max_workers=BLUR_WORKERS) as pool:
        futures = {
            pool.submit(fetch_blur_placeholder, client, settings.cloud_name, image): image
            for image in pending
        }
        for i, future in enumerate(as_completed(futures)):
            image = futures[future]
            try:
                image["blur_data_url"] = future.result()
            except (httpx.HTTPError, OSError) as e:
                # PIL's UnidentifiedImageError is an OSError
                print(f"  [{i+1}/{total}] Blur failed for {image['public_id']}: {e}")
                image["blur_data_url"] = None
            else:
                cache.set(cache_key(image), image["blur_data_url"])

            if (i + 1) % 50 == 0 or i + 1 == total:
                print(f"  [{i+1}/{total}] processed")


# ---------------------------------------------------------------------------
# Step 3: Generate HTML
# ---------------------------------------------------------------------------

# ---------------------------------------------------------------------------
# Shared CSS (written to assets/style.css)
# ---------------------------------------------------------------------------

SHARED_CSS = """\
/* ── reset & base ── */
*, *::before, *::after { box-sizing: border-box; }
[hidden] { display: none !important; }
html { background: #000; }
body {
  margin: 0;
  font-family: "Inter", system-ui, -apple-system, sans-serif;
  font-size: 16px; line-height: 1.5;
  background: #000; color: #fff;
  -webkit-font-smoothing: antialiased;
}
body.modal-open { overflow: hidden; }
a { color: inherit; }
main { max-width: 1960px; margin: 0 auto; padding: 16px; }

/* ── masonry grid ── */
.gallery { column-count: 1; column-gap: 16px; }
@media (min-width: 640px) { .gallery { column-count: 2; } }
@media (min-width: 1280px) { .gallery { column-count: 3; } }
@media (min-width: 1536px) { .gallery { column-count: 4; } }

.intro {
  position: relative; break-inside: avoid;
  display: flex; flex-direction: column; align-items: center; justify-content: flex-end;
  gap: 16px; height: 629px; margin-bottom: 20px; padding: 256px 24px 64px;
  overflow: hidden; border-radius: 8px; text-align: center;
  background: rgba(255,255,255,0.1);
  box-shadow: inset 0 0 0 1px rgba(255,255,255,0.05), inset 0 1px 0 0 rgba(255,255,255,0.05);
}
.intro .logo {
  position: absolute; inset: 0; display: flex; align-items: center; justify-content: center;
  opacity: 0.2; pointer-events: none;
}
.intro h1 {
  margin: 32px 0 8px; font-size: 1.125rem; font-weight: 700;
  text-transform: uppercase; letter-spacing: 0.1em;
}
.intro .subtitle {
  margin: 0; font-weight: 600; text-transform: uppercase; letter-spacing: 0.1em;
}
.intro .contact { max-width: 40ch; margin: 0 auto; }
.intro .contact p { margin: 0; }
.intro .contact a { display: block; margin-top: 8px; text-decoration: underline; }
.intro .contact a.phone { color: rgba(255,255,255,0.75); }
@media (min-width: 640px) { .intro .contact { max-width: 32ch; } }
@media (min-width: 1024px) { .intro { padding-top: 0; } .intro h1 { font-size: 1.25rem; } }

.photo-link {
  position: relative; display: block; width: 100%; margin-bottom: 20px;
  break-inside: avoid; cursor: zoom-in;
}
.photo-link::after {
  content: ""; position: absolute; inset: 0; border-radius: 8px; pointer-events: none;
  box-shadow: inset 0 0 0 1px rgba(255,255,255,0.05);
}
.photo-link img {
  display: block; width: 100%; height: auto; border-radius: 8px;
  background-size: cover; background-position: center;
  filter: brightness(0.9); transform: translate3d(0, 0, 0);
  transition: filter 0.15s;
}
.photo-link:hover img { filter: brightness(1.1); }

footer { padding: 24px; text-align: center; color: rgba(255,255,255,0.8); }
@media (min-width: 640px) { footer { padding: 48px; } }

/* ── modal ── */
.modal {
  position: fixed; inset: 0; z-index: 50;
  display: flex; flex-direction: column; align-items: center; justify-content: center;
}
.modal-backdrop {
  position: absolute; inset: 0; background: #000 center / cover no-repeat;
}
.modal-backdrop::after {
  content: ""; position: absolute; inset: 0;
  background: rgba(0,0,0,0.7); backdrop-filter: blur(40px);
}
.modal-stage {
  position: relative; width: 100%; max-width: 1280px;
  display: flex; align-items: center; justify-content: center;
}
.modal-stage img {
  display: block; max-width: 100%; max-height: 80vh; width: auto; height: auto;
}
.modal-nav {
  position: absolute; top: 50%; transform: translateY(-50%);
  border: 0; border-radius: 9999px; padding: 12px 16px;
  background: rgba(0,0,0,0.5); color: rgba(255,255,255,0.75);
  font-size: 1.5rem; cursor: pointer; backdrop-filter: blur(16px);
}
.modal-nav:hover { background: rgba(0,0,0,0.75); color: #fff; }
.modal-nav.prev { left: 12px; }
.modal-nav.next { right: 12px; }
.modal-toolbar {
  position: absolute; top: 0; left: 0; right: 0;
  display: flex; justify-content: space-between; padding: 12px;
}
.modal-toolbar .group { display: flex; gap: 8px; }
.modal-toolbar a, .modal-toolbar button {
  border: 0; border-radius: 9999px; padding: 8px 12px;
  background: rgba(0,0,0,0.5); color: rgba(255,255,255,0.75);
  font: inherit; text-decoration: none; cursor: pointer; backdrop-filter: blur(16px);
}
.modal-toolbar a:hover, .modal-toolbar button:hover { background: rgba(0,0,0,0.75); color: #fff; }
.filmstrip {
  position: absolute; bottom: 0; left: 0; right: 0;
  display: flex; justify-content: center; gap: 2px; padding: 12px 0 24px;
  overflow: hidden; background: linear-gradient(to bottom, transparent, rgba(0,0,0,0.6));
}
.filmstrip button {
  flex: none; width: 64px; height: 80px; padding: 0; border: 0;
  background: none; cursor: pointer; opacity: 0.5; filter: brightness(0.5);
  transition: opacity 0.15s, filter 0.15s;
}
.filmstrip button:hover { opacity: 1; filter: brightness(0.75); }
.filmstrip button.active { opacity: 1; filter: brightness(1.1); width: 80px; }
.filmstrip img { width: 100%; height: 100%; object-fit: cover; }

@media (max-width: 640px) {
  .filmstrip { display: none; }
  .modal-nav { display: none; }
}
"""

GALLERY_JS = """\
(function() {
  var dataEl = document.getElementById('gallery-data');
  var modal = document.getElementById('modal');
  if (!dataEl || !modal) return;

  var FILMSTRIP_RANGE = 15;
  var SWIPE_THRESHOLD = 50;
  var STORAGE_KEY = 'lastViewedPhoto';

  var images = JSON.parse(dataEl.textContent);
  var byId = {};
  images.forEach(function(img) { byId[img.id] = img; });

  var root = new URL(document.body.dataset.root || './', window.location.href);
  var grid = document.getElementById('gallery-grid');
  var standalone = !grid;
  var pagePhotoId = standalone ? toId(document.body.dataset.photoId) : null;

  var backdrop = document.getElementById('modal-backdrop');
  var modalImage = document.getElementById('modal-image');
  var prevBtn = document.getElementById('modal-prev');
  var nextBtn = document.getElementById('modal-next');
  var closeBtn = document.getElementById('modal-close');
  var openLink = document.getElementById('modal-open');
  var downloadBtn = document.getElementById('modal-download');
  var filmstrip = document.getElementById('modal-filmstrip');

  var currentId = null;

  // Last viewed photo survives the hop from a shared /p/<id>/ page to the grid.
  var lastViewed = (function() {
    var memory = null;
    return {
      get: function() {
        try {
          var v = window.sessionStorage.getItem(STORAGE_KEY);
          return v === null ? null : toId(v);
        } catch (e) {
          return memory;
        }
      },
      set: function(id) {
        memory = id;
        try {
          if (id === null) window.sessionStorage.removeItem(STORAGE_KEY);
          else window.sessionStorage.setItem(STORAGE_KEY, String(id));
        } catch (e) {
          // storage disabled; memory copy is enough within this page
        }
      }
    };
  })();

  function toId(value) {
    // plain decimal digits only; Number() would also accept '0x1' or '1e0'
    if (value === null || value === undefined || !/^\\d+$/.test(String(value))) return null;
    var n = Number(value);
    return byId.hasOwnProperty(n) ? n : null;
  }

  function photoUrl(id) {
    return new URL('p/' + id + '/', root).href;
  }

  function currentPhotoId() {
    var params = new URLSearchParams(window.location.search);
    if (params.has('photoId')) return toId(params.get('photoId'));
    var path = window.location.pathname;
    if (path.indexOf(root.pathname) !== 0) return null;
    var m = path.slice(root.pathname.length).match(/^p\\/(\\d+)\\/?(?:index\\.html)?$/);
    return m ? toId(m[1]) : null;
  }

  function renderFilmstrip(id) {
    if (!filmstrip) return;
    filmstrip.innerHTML = '';
    if (standalone) return;
    images.forEach(function(img) {
      if (img.id < id - FILMSTRIP_RANGE || img.id > id + FILMSTRIP_RANGE) return;
      var btn = document.createElement('button');
      btn.type = 'button';
      btn.dataset.photoId = img.id;
      btn.setAttribute('aria-label', 'Photo ' + (img.id + 1));
      if (img.id === id) btn.className = 'active';
      var thumb = document.createElement('img');
      thumb.src = img.thumb;
      thumb.alt = '';
      thumb.loading = 'lazy';
      btn.appendChild(thumb);
      filmstrip.appendChild(btn);
    });
    var active = filmstrip.querySelector('.active');
    if (active && active.scrollIntoView) active.scrollIntoView({block: 'nearest', inline: 'center'});
  }

  function preload(id) {
    if (byId.hasOwnProperty(id)) new Image().src = byId[id].full;
  }

  function showModal(id) {
    var img = byId[id];
    var wasOpen = currentId !== null;
    currentId = id;
    modalImage.src = img.full;
    modalImage.width = img.width;
    modalImage.height = img.height;
    modalImage.alt = 'Photo ' + (id + 1);
    backdrop.style.backgroundImage = img.blur ? 'url(' + img.blur + ')' : '';
    openLink.href = img.original;
    prevBtn.hidden = standalone || !byId.hasOwnProperty(id - 1);
    nextBtn.hidden = standalone || !byId.hasOwnProperty(id + 1);
    renderFilmstrip(id);
    modal.hidden = false;
    document.body.classList.add('modal-open');
    if (!wasOpen) closeBtn.focus();
    if (!standalone) {
      preload(id + 1);
      preload(id - 1);
    }
  }

  function hideModal() {
    currentId = null;
    modal.hidden = true;
    modalImage.removeAttribute('src');
    document.body.classList.remove('modal-open');
  }

  // Bring the modal in line with the URL, then restore grid scroll once.
  function sync() {
    var id = standalone ? pagePhotoId : currentPhotoId();
    if (id !== null) {
      showModal(id);
      return;
    }
    hideModal();
    var last = lastViewed.get();
    if (last !== null) {
      var link = document.getElementById('photo-' + last);
      if (link) link.scrollIntoView({block: 'center'});
      lastViewed.set(null);
    }
  }

  function changePhoto(id) {
    if (standalone || !byId.hasOwnProperty(id) || id === currentId) return;
    window.history.pushState({photoId: id}, '', photoUrl(id));
    sync();
  }

  function step(delta) {
    if (currentId !== null) changePhoto(currentId + delta);
  }

  function closeModal() {
    if (currentId === null) return;
    lastViewed.set(currentId);
    if (standalone) {
      window.location.href = root.href;
      return;
    }
    window.history.pushState({}, '', root.href);
    sync();
  }

  function downloadPhoto(img) {
    fetch(img.original, {mode: 'cors'})
      .then(function(resp) { return resp.blob(); })
      .then(function(blob) {
        var a = document.createElement('a');
        a.href = URL.createObjectURL(blob);
        a.download = img.public_id.split('/').pop() + '.' + img.format;
        document.body.appendChild(a);
        a.click();
        a.remove();
        URL.revokeObjectURL(a.href);
      })
      .catch(function(e) { console.error('Download failed:', e); });
  }

  if (grid) {
    grid.addEventListener('click', function(e) {
      var link = e.target.closest('a[data-photo-id]');
      if (!link || e.button !== 0 || e.metaKey || e.ctrlKey || e.shiftKey || e.altKey) return;
      e.preventDefault();
      changePhoto(Number(link.dataset.photoId));
    });
  }

  prevBtn.addEventListener('click', function() { step(-1); });
  nextBtn.addEventListener('click', function() { step(1); });
  closeBtn.addEventListener('click', closeModal);
  backdrop.addEventListener('click', closeModal);
  downloadBtn.addEventListener('click', function() {
    if (currentId !== null) downloadPhoto(byId[currentId]);
  });
  if (filmstrip) {
    filmstrip.addEventListener('click', function(e) {
      var btn = e.target.closest('button[data-photo-id]');
      if (btn) changePhoto(Number(btn.dataset.photoId));
    });
  }

  document.addEventListener('keydown', function(e) {
    if (currentId === null) return;
    if (e.key === 'Escape') closeModal();
    else if (e.key === 'ArrowLeft') step(-1);
    else if (e.key === 'ArrowRight') step(1);
  });

  var touchX = null;
  modal.addEventListener('touchstart', function(e) {
    touchX = e.changedTouches[0].clientX;
  }, {passive: true});
  modal.addEventListener('touchend', function(e) {
    if (touchX === null) return;
    var dx = e.changedTouches[0].clientX - touchX;
    touchX = null;
    if (Math.abs(dx) >= SWIPE_THRESHOLD) step(dx < 0 ? 1 : -1);
  }, {passive: true});

  window.addEventListener('popstate', sync);
  sync();
})();
"""

LOGO_SVG = Markup("""\
<svg aria-hidden="true" width="280" height="280" viewBox="0 0 100 100" fill="none" stroke="currentColor" stroke-width="2">
  <ellipse cx="38" cy="26" rx="8" ry="22"/>
  <ellipse cx="62" cy="26" rx="8" ry="22"/>
  <circle cx="50" cy="66" r="26"/>
  <circle cx="41" cy="62" r="3" fill="currentColor"/>
  <circle cx="59" cy="62" r="3" fill="currentColor"/>
  <path d="M44 76 Q50 82 56 76"/>
</svg>""")

MODAL_HTML = Markup("""\
<div class="modal" id="modal" role="dialog" aria-modal="true" aria-label="Photo viewer" hidden>
  <div class="modal-backdrop" id="modal-backdrop"></div>
  <div class="modal-stage">
    <img id="modal-image" alt="">
    <button type="button" class="modal-nav prev" id="modal-prev" aria-label="Previous photo">&lsaquo;</button>
    <button type="button" class="modal-nav next" id="modal-next" aria-label="Next photo">&rsaquo;</button>
  </div>
  <div class="modal-toolbar">
    <div class="group">
      <button type="button" id="modal-close" aria-label="Close">&times;</button>
    </div>
    <div class="group">
      <a id="modal-open" href="#" target="_blank" rel="noreferrer" title="Open fullsize version">Fullsize &nearr;</a>
      <button type="button" id="modal-download" title="Download fullsize version">Download</button>
    </div>
  </div>
  <nav class="filmstrip" id="modal-filmstrip" aria-label="Nearby photos"></nav>
</div>""")

INDEX_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }}</title>
<meta property="og:type" content="website">
<meta property="og:title" content="{{ title }}">
<meta property="og:description" content="{{ subtitle }}">
{% if og_image %}<meta property="og:image" content="{{ og_image }}">
<meta name="twitter:card" content="summary_large_image">
<meta name="twitter:image" content="{{ og_image }}">{% endif %}
{% if page_url %}<meta property="og:url" content="{{ page_url }}">{% endif %}
<link rel="stylesheet" href="assets/style.css">
</head>
<body data-root="./">
<main>
{{ modal }}
<div class="gallery" id="gallery-grid">
<div class="intro">
  <div class="logo">{{ logo }}</div>
  <div>
    <h1>{{ title }}</h1>
    <p class="subtitle">{{ subtitle }}</p>
  </div>
  <div class="contact">
    <p>Contact me:</p>
    <a href="mailto:{{ email }}">{{ email }}</a>
    <a class="phone" href="tel:{{ phone }}">{{ phone }}</a>
  </div>
</div>
{% for image in images %}<a class="photo-link" id="photo-{{ image.id }}" href="p/{{ image.id }}/" data-photo-id="{{ image.id }}"><img src="{{ image.grid }}" srcset="{{ image.srcset }}" sizes="{{ sizes }}" width="{{ image.grid_width }}" height="{{ image.grid_height }}" alt="{{ title }} photo {{ image.id + 1 }}" loading="lazy"{% if image.blur %} style="background-image: url('{{ image.blur }}')"{% endif %}></a>
{% endfor %}
</div>
</main>
<footer>All images are property of <a href="{{ footer_url }}" target="_blank" rel="noopener">{{ footer_owner }}</a> {{ footer_year }}</footer>
<script type="application/json" id="gallery-data">{{ gallery_data|tojson }}</script>
<script src="assets/gallery.js"></script>
</body>
</html>
""")

PHOTO_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }} — photo {{ image.id + 1 }}</title>
<meta property="og:type" content="website">
<meta property="og:title" content="{{ title }}">
<meta property="og:description" content="{{ subtitle }}">
<meta property="og:image" content="{{ image.full }}">
{% if page_url %}<meta property="og:url" content="{{ page_url }}">{% endif %}
<meta name="twitter:card" content="summary_large_image">
<meta name="twitter:title" content="{{ title }}">
<meta name="twitter:image" content="{{ image.full }}">
<link rel="stylesheet" href="../../assets/style.css">
</head>
<body data-root="../../" data-photo-id="{{ image.id }}">
<main>
{{ modal }}
<noscript><a href="../../"><img src="{{ image.full }}" alt="{{ title }} photo {{ image.id + 1 }}" style="max-width: 100%; height: auto"></a></noscript>
</main>
<script type="application/json" id="gallery-data">{{ gallery_data|tojson }}</script>
<script src="../../assets/gallery.js"></script>
</body>
</html>
""")


def grid_height(image: dict) -> int:
    """Height of the grid rendition, keeping the image's aspect ratio."""
    if not image.get("width"):
        return GRID_WIDTH * 2 // 3
    return max(1, round(GRID_WIDTH * image["height"] / image["width"]))


def gallery_entry(cloud_name: str, image: dict) -> dict:
    """Everything the templates and gallery.js need about one image."""
    return {
        "id": image["id"],
        "public_id": image["public_id"],
        "format": image["format"],
        "width": image["width"],
        "height": image["height"],
        "grid": scaled_url(cloud_name, image, GRID_WIDTH),
        "grid_width": GRID_WIDTH,
        "grid_height": grid_height(image),
        "srcset": ", ".join(
            f"{scaled_url(cloud_name, image, w)} {w}w" for w in GRID_SRCSET_WIDTHS
        ),
        "full": scaled_url(cloud_name, image, MODAL_WIDTH),
        "thumb": scaled_url(cloud_name, image, FILMSTRIP_WIDTH),
        "original": image_url(cloud_name, image),
        "blur": image.get("blur_data_url"),
    }


def gallery_data(entries: list[dict]) -> list[dict]:
    # the grid-only fields stay out of the embedded JSON
    keys = ("id", "public_id", "format", "width", "height", "full", "thumb", "original", "blur")
    return [{k: e[k] for k in keys} for e in entries]


def page_url(base_url: str, path: str = "") -> str:
    if not base_url:
        return ""
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def _common_context(entries: list[dict]) -> dict:
    return {
        "title": SITE_TITLE,
        "subtitle": SITE_SUBTITLE,
        "modal": MODAL_HTML,
        "gallery_data": gallery_data(entries),
    }


def render_index(images: list[dict], settings: Settings) -> str:
    entries = [gallery_entry(settings.cloud_name, image) for image in images]
    return INDEX_TEMPLATE.render(
        images=entries,
        sizes=GRID_SIZES,
        logo=LOGO_SVG,
        email=CONTACT_EMAIL,
        phone=CONTACT_PHONE,
        footer_owner=FOOTER_OWNER,
        footer_url=FOOTER_URL,
        footer_year=FOOTER_YEAR,
        og_image=entries[0]["full"] if entries else "",
        page_url=page_url(settings.base_url),
        **_common_context(entries),
    )


def render_photo_page(image: dict, settings: Settings) -> str:
    """Shareable page for a single photo, opened straight into the modal.

    Only this photo's data is embedded: the page has no prev/next navigation,
    closing it goes back to the grid.
    """
    entry = gallery_entry(settings.cloud_name, image)
    return PHOTO_TEMPLATE.render(
        image=entry,
        page_url=page_url(settings.base_url, f"p/{image['id']}/"),
        **_common_context([entry]),
    )


def write_sitemap(site_dir: Path, urls: list[str], base_url: str):
    urlset = ET.Element("urlset", xmlns="http://www.sitemaps.org/schemas/sitemap/0.9")
    for u in urls:
        url = ET.SubElement(urlset, "url")
        ET.SubElement(url, "loc").text = page_url(base_url, u)
    ET.ElementTree(urlset).write(site_dir / "sitemap.xml", encoding="utf-8", xml_declaration=True)


def write_site(images: list[dict], settings: Settings):
    """Generate index.html, per-photo pages and shared assets."""
    site_dir = settings.site_dir

    assets_dir = site_dir / "assets"
    assets_dir.mkdir(parents=True, exist_ok=True)
    (assets_dir / "style.css").write_text(SHARED_CSS, encoding="utf-8")
    (assets_dir / "gallery.js").write_text(GALLERY_JS, encoding="utf-8")
    print("  Wrote assets/style.css, assets/gallery.js")

    (site_dir / "index.html").write_text(render_index(images, settings), encoding="utf-8")
    print(f"  Wrote index.html ({len(images)} photos)")

    # pages of photos removed from the folder must not stay reachable
    shutil.rmtree(site_dir / "p", ignore_errors=True)
    for image in images:
        out_dir = site_dir / "p" / str(image["id"])
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / "index.html").write_text(
            render_photo_page(image, settings), encoding="utf-8"
        )
    print(f"  Wrote {len(images)} photo pages")

    if settings.base_url:
        write_sitemap(site_dir, [""] + [f"p/{image['id']}/" for image in images], settings.base_url)
        print("  Wrote sitemap.xml")
    else:
        (site_dir / "sitemap.xml").unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def build_site(settings: Settings, client: httpx.Client) -> list[dict]:
    settings.site_dir.mkdir(parents=True, exist_ok=True)

    print(f"Step 1: Searching Cloudinary folder {settings.folder}/...")
    images = reduce_resources(search_folder(client, settings))
    print(f"  Found {len(images)} images")

    print("Step 2: Generating blur placeholders...")
    attach_blur_placeholders(images, client, settings, JsonCache(settings.cache_path))

    print("Step 3: Generating HTML...")
    write_site(images, settings)
    return images


def main():
    try:
        settings = Settings.from_env()
    except GalleryConfigError as e:
        print(f"Configuration error: {e}")
        raise SystemExit(1)

    with httpx.Client(timeout=HTTP_TIMEOUT, follow_redirects=True) as client:
        build_site(settings, client)

    print(f"\nDone! Site written to {settings.site_dir}/")
    print(f"Run: python3 -m http.server -d {settings.site_dir} 8000")


if __name__ == "__main__":
    main()
