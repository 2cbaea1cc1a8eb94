"""RSS and sitemap documents for crawlers and feed readers."""
from __future__ import annotations

from datetime import UTC, date, datetime
from email.utils import format_datetime
from html import escape

from sqlalchemy.orm import Session

from unfiltered_voice.core.settings import settings
from unfiltered_voice.models import Post
from unfiltered_voice.models.post import CATEGORY_LABELS, POST_CATEGORIES
from unfiltered_voice.services.posts import list_published_posts

# (path, priority, changefreq)
STATIC_PAGES: tuple[tuple[str, str, str], ...] = (
    ("", "1.0", "daily"),
    ("/categories", "0.9", "weekly"),
    *((f"/{category}", "0.8", "weekly") for category in POST_CATEGORIES),
    ("/meet-niyati", "0.7", "monthly"),
    ("/contact", "0.6", "monthly"),
)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _rfc2822(value: datetime) -> str:
    return format_datetime(_aware(value).astimezone(UTC), usegmt=True)


def _description(post: Post) -> str:
    if post.excerpt:
        return post.excerpt
    if post.content:
        return post.content[:200] + "..."
    return ""


def build_rss(db: Session, now: datetime | None = None) -> str:
    """Return an RSS 2.0 document listing the newest published posts."""
    base = settings.site_base_url.rstrip("/")
    author = f"{settings.site_author_email} ({settings.site_author})"
    now = now or datetime.now(UTC)

    items = []
    for post in list_published_posts(db, limit=settings.rss_item_limit):
        link = f"{base}/{post.category}/{post.slug}"
        enclosure = ""
        if post.cover_url:
            enclosure = f'\n      <enclosure url="{escape(post.cover_url)}" type="image/jpeg"/>'
        items.append(
            f"""
    <item>
      <title>{escape(post.title)}</title>
      <link>{escape(link)}</link>
      <guid isPermaLink="true">{escape(link)}</guid>
      <pubDate>{_rfc2822(post.published_at or post.created_at)}</pubDate>
      <category>{escape(CATEGORY_LABELS.get(post.category, post.category))}</category>
      <description>{escape(_description(post))}</description>
      <author>{escape(author)}</author>{enclosure}
    </item>"""
        )

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">
  <channel>
    <title>{escape(settings.app_name)}</title>
    <description>{escape(settings.site_description)}</description>
    <link>{base}</link>
    <atom:link href="{base}/rss.xml" rel="self" type="application/rss+xml"/>
    <language>en-us</language>
    <lastBuildDate>{_rfc2822(now)}</lastBuildDate>
    <managingEditor>{escape(author)}</managingEditor>
    <webMaster>{escape(author)}</webMaster>
    <copyright>Copyright {now.year} {escape(settings.app_name)}</copyright>
    <image>
      <url>{base}/favicon.png</url>
      <title>{escape(settings.app_name)}</title>
      <link>{base}</link>
    </image>{"".join(items)}
  </channel>
</rss>"""


def _url(loc: str, lastmod: date, changefreq: str, priority: str) -> str:
    return f"""  <url>
    <loc>{escape(loc)}</loc>
    <lastmod>{lastmod.isoformat()}</lastmod>
    <changefreq>{changefreq}</changefreq>
    <priority>{priority}</priority>
  </url>
"""


def build_sitemap(db: Session, today: date | None = None) -> str:
    """Return a sitemap of the static pages and every published post."""
    base = settings.site_base_url.rstrip("/")
    today = today or datetime.now(UTC).date()

    parts = ['<?xml version="1.0" encoding="UTF-8"?>\n']
    parts.append('<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n')
    for path, priority, changefreq in STATIC_PAGES:
        parts.append(_url(f"{base}{path}", today, changefreq, priority))
    for post in list_published_posts(db):
        modified = post.updated_at or post.published_at or post.created_at
        parts.append(
            _url(f"{base}/{post.category}/{post.slug}", modified.date(), "monthly", "0.7")
        )
    parts.append("</urlset>")
    return "".join(parts)
