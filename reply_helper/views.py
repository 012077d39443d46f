from datetime import datetime
from email.utils import parsedate_to_datetime
from html import escape

from reply_helper.schemas import HistoricalMatch, Notice, RequestOutcome, SuggestedReply

PLACEHOLDER_EMAIL = "Hi Cameron, we're already a B-Corp, is this any different?"
NO_RESULTS_MESSAGE = "No relevant responses found. Try being more specific."
DEMO_MODE_MESSAGE = "Demo mode: the live service was unavailable, so these results are sample data."

PAGE = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Customer Conversation Helper</title>
  <style>
    body {{ font-family: Arial, sans-serif; max-width: 960px; margin: 32px auto; padding: 0 16px; color: #0f172a; background: #f8fafc; }}
    .badge {{ display: inline-block; border-radius: 999px; background: #e0e7ff; color: #3730a3; padding: 4px 12px; font-size: 14px; }}
    .card {{ border: 1px solid #cbd5e1; background: #ffffff; border-radius: 8px; padding: 16px; margin-top: 24px; }}
    .muted {{ color: #475569; font-size: 14px; }}
    .box {{ background: #f1f5f9; border-radius: 6px; padding: 12px; white-space: pre-line; }}
    .match-head {{ display: flex; justify-content: space-between; align-items: center; background: #f1f5f9; padding: 8px 12px; }}
    .pill {{ font-size: 12px; background: #ffffff; border-radius: 999px; padding: 2px 8px; margin-left: 6px; }}
    .toasts {{ position: fixed; top: 16px; right: 16px; width: 320px; }}
    .banner {{ border-radius: 6px; padding: 10px 12px; margin-top: 16px; }}
    .banner-error {{ background: #fee2e2; color: #991b1b; }}
    .banner-warning {{ background: #fef3c7; color: #92400e; }}
    .banner-info, .banner-success {{ background: #dbeafe; color: #1e40af; }}
    textarea {{ width: 100%; min-height: 120px; box-sizing: border-box; padding: 8px; }}
    button {{ width: 100%; margin-top: 12px; padding: 10px; background: #1d4ed8; color: #ffffff; border: 0; border-radius: 6px; cursor: pointer; }}
    button:disabled {{ opacity: 0.6; cursor: wait; }}
  </style>
</head>
<body>
  <span class="badge">Customer Conversation Helper</span>
  <h1>Get intelligent response suggestions</h1>
  <div class="toasts">{notices}</div>
  {form}
  {results}
  <script>
    const form = document.getElementById("email-form");
    form.addEventListener("submit", () => {{
      const button = document.getElementById("submit-button");
      button.disabled = true;
      button.textContent = "Analyzing...";
    }});
    function copyAnswer() {{
      navigator.clipboard.writeText(document.getElementById("answer").innerText);
    }}
  </script>
</body>
</html>"""


def format_date(value: str) -> str:
    """'2024-03-05' -> 'Mar 5, 2024'; unparseable input is returned unchanged."""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return value
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def render_banner(level: str, message: str) -> str:
    return f'<div class="banner banner-{escape(level)}">{escape(message)}</div>'


def render_notices(notices: list[Notice]) -> str:
    return "\n".join(render_banner(n.level, n.message) for n in notices)


def render_form(email_text: str = "") -> str:
    return f"""<div class="card">
    <h2>Customer Inquiry</h2>
    <p class="muted">Enter the customer's email to get response suggestions</p>
    <form id="email-form" method="post" action="/">
      <textarea id="customer_email" name="customer_email" placeholder="{escape(PLACEHOLDER_EMAIL)}">{escape(email_text)}</textarea>
      <button id="submit-button" type="submit">Get Response Suggestions</button>
    </form>
  </div>"""


def render_suggestion(reply: SuggestedReply | None) -> str:
    if reply is None:
        return ""
    return f"""<div class="card">
    <div style="display: flex; justify-content: space-between; align-items: center;">
      <div>
        <h2>Suggested Response</h2>
        <p class="muted">Based on your previous communications</p>
      </div>
      <button type="button" style="width: auto;" onclick="copyAnswer()">Copy</button>
    </div>
    <div class="box" id="answer">{escape(reply.answer)}</div>
    <hr />
    <h4 class="muted">Source Email</h4>
    <div class="box muted">{escape(reply.source)}</div>
    <h4 class="muted">Justification</h4>
    <div class="box muted">{escape(reply.justification)}</div>
  </div>"""


def render_match(match: HistoricalMatch) -> str:
    props = match.properties
    date = format_date(props.date)
    date_pill = f'<span class="pill">{escape(date)}</span>' if date else ""
    category = f'<p class="muted">{escape(props.category)}</p>' if props.category else ""
    customer_wrote = (
        f'<h4 class="muted">Customer wrote</h4>\n        <p class="box muted">{escape(props.replying_to)}</p>'
        if props.replying_to
        else ""
    )
    return f"""<div class="card" style="padding: 0; overflow: hidden;">
      <div class="match-head">
        <div>
          <strong>{escape(props.customer_name)}</strong>
          <div class="muted">{escape(props.customer_email)}</div>
        </div>
        <div>{date_pill}<span class="pill">{match.match_percentage}% match</span></div>
      </div>
      <div style="padding: 12px;">
        {customer_wrote}
        <p class="box">{escape(props.my_reply)}</p>
        {category}
      </div>
    </div>"""


def render_history(matches: list[HistoricalMatch]) -> str:
    if not matches:
        return ""
    items = "\n".join(render_match(m) for m in matches)
    return f"""<div class="card">
    <h2>Similar Historical Questions</h2>
    <p class="muted">Previous customer conversations on similar topics</p>
    {items}
  </div>"""


def render_results(outcome: RequestOutcome | None) -> str:
    if outcome is None:
        return ""
    parts = []
    if outcome.error:
        parts.append(render_banner("error", outcome.error))
    if outcome.used_fallback:
        parts.append(render_banner("info", DEMO_MODE_MESSAGE))
    if outcome.is_empty:
        parts.append(render_banner("warning", NO_RESULTS_MESSAGE))
    parts.append(render_suggestion(outcome.suggestion))
    parts.append(render_history(outcome.historical_matches))
    return "\n".join(p for p in parts if p)


def render_page(outcome: RequestOutcome | None = None, email_text: str = "", notices: list[Notice] | None = None) -> str:
    return PAGE.format(
        notices=render_notices(notices or []),
        form=render_form(email_text),
        results=render_results(outcome),
    )
