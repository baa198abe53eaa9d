"""Stateless HTML building blocks for the screens."""

from html import escape

from things_together.domain.things import Thing
from things_together.services.routing import (
    ADD_THING_PATH,
    DONE_PATH,
    HOME_PATH,
    done_detail_path,
    planned_detail_path,
)

NO_PHOTO_PLACEHOLDER = (
    "https://via.placeholder.com/400x300/CCCCCC/FFFFFF?text=No+Photo"
)

_STYLE = """
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 0;
             background: #fdf6f0; color: #3d3d3d; }
      main { max-width: 36rem; margin: 0 auto; padding: 1.5rem 1rem 5rem; }
      header { display: flex; justify-content: space-between; align-items: center;
               padding: 1.5rem; }
      .tabs a { padding: 0.25rem 1rem; border-radius: 0.4rem; color: #8a8a8a;
                text-decoration: none; font-weight: 600; }
      .tabs a.active { background: #fff; color: #3d3d3d; }
      .card { display: block; padding: 1.5rem; border-radius: 0.75rem;
              background: #eb5b46; color: #fff; text-decoration: none;
              margin-bottom: 1rem; }
      .memory img { width: 100%; border-radius: 0.75rem; }
      .panel { background: #fff; padding: 1.5rem; border-radius: 1rem; }
      .button { display: inline-block; padding: 0.6rem 1.4rem; border: 0;
                border-radius: 999px; font-weight: 600; cursor: pointer;
                text-decoration: none; }
      .button.primary { background: #eb5b46; color: #fff; }
      .button.ghost { background: transparent; color: #8a8a8a; }
      .button:disabled { opacity: 0.5; cursor: not-allowed; }
      .error { color: #d93025; }
      .modal { position: fixed; inset: 0; background: rgba(0, 0, 0, 0.6);
               display: flex; align-items: center; justify-content: center; }
      .modal .panel { width: min(32rem, 90vw); }
      label { display: block; margin: 1rem 0 0.25rem; font-weight: 600; }
      input, textarea { width: 100%; padding: 0.5rem; box-sizing: border-box; }
"""

# Posts a form as JSON and follows the redirect in the response.
_FORM_SCRIPT = """
    <script>
      async function submitJson(form, path) {
        const output = form.querySelector('.error');
        const button = form.querySelector('button[type=submit]');
        const body = Object.fromEntries(new FormData(form).entries());
        button.disabled = true;
        output.textContent = '';
        try {
          const res = await fetch(path, {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify(body)
          });
          const data = await res.json();
          if (res.ok && data.redirect_to) {
            window.location.href = data.redirect_to;
            return;
          }
          output.textContent = data.message || (res.ok ? '' : 'Error: ' + res.status);
          if (res.ok) { window.location.reload(); }
        } finally {
          button.disabled = false;
        }
        return false;
      }
    </script>
"""


def page(title: str, body: str, refresh_seconds: int | None = None) -> str:
    """Wrap a screen body in the document shell."""
    refresh = (
        f'<meta http-equiv="refresh" content="{refresh_seconds}" />'
        if refresh_seconds is not None
        else ""
    )
    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    {refresh}
    <title>{escape(title)}</title>
    <style>{_STYLE}</style>
    {_FORM_SCRIPT}
  </head>
  <body>
{body}
  </body>
</html>
"""


def button(
    label: str,
    *,
    href: str | None = None,
    variant: str = "primary",
    submit: bool = False,
    disabled: bool = False,
) -> str:
    css = f"button {escape(variant)}"
    if href is not None:
        return f'<a class="{css}" href="{escape(href)}">{escape(label)}</a>'
    kind = "submit" if submit else "button"
    attrs = " disabled" if disabled else ""
    return f'<button type="{kind}" class="{css}"{attrs}>{escape(label)}</button>'


def text_input(
    name: str,
    label: str,
    *,
    input_type: str = "text",
    placeholder: str = "",
    required: bool = False,
) -> str:
    required_attr = " required" if required else ""
    return (
        f'<label for="{escape(name)}">{escape(label)}</label>'
        f'<input id="{escape(name)}" name="{escape(name)}" '
        f'type="{escape(input_type)}" placeholder="{escape(placeholder)}"'
        f"{required_attr} />"
    )


def text_area(name: str, label: str, *, placeholder: str = "") -> str:
    return (
        f'<label for="{escape(name)}">{escape(label)}</label>'
        f'<textarea id="{escape(name)}" name="{escape(name)}" rows="4" '
        f'placeholder="{escape(placeholder)}"></textarea>'
    )


def form(action: str, fields: str, submit: str) -> str:
    """A form that posts its fields as JSON to ``action``."""
    return (
        f"<form onsubmit=\"submitJson(this, '{escape(action)}'); return false;\">"
        f'{fields}<p class="error"></p>{submit}</form>'
    )


def header(active: str) -> str:
    """Tabs for the two lists plus the add and sign-out actions."""
    tabs = "".join(
        f'<a href="{path}" class="{"active" if path == active else ""}">{label}</a>'
        for path, label in ((HOME_PATH, "to-do"), (DONE_PATH, "done"))
    )
    sign_out = (
        "<form style=\"display:inline\" "
        "onsubmit=\"submitJson(this, '/api/signout'); return false;\">"
        '<span class="error"></span>'
        + button("Sign Out", submit=True)
        + "</form>"
    )
    return (
        f'<header><nav class="tabs">{tabs}</nav>'
        f'<div><a class="button ghost" href="{ADD_THING_PATH}">+</a> {sign_out}'
        "</div></header>"
    )


def thing_card(thing: Thing) -> str:
    added_by = (
        f"<p>Added by {escape(thing.added_by)}</p>" if thing.added_by else ""
    )
    return (
        f'<li><a class="card" href="{planned_detail_path(thing.id)}">'
        f"<h3>{escape(thing.title)}</h3>{added_by}</a></li>"
    )


def memory_card(thing: Thing) -> str:
    done_on = thing.done_at.date().isoformat() if thing.done_at else "N/A"
    photo = thing.photo_url or NO_PHOTO_PLACEHOLDER
    return (
        f'<a class="memory" href="{done_detail_path(thing.id)}">'
        f'<img src="{escape(photo)}" alt="{escape(thing.title)}" />'
        f"<h3>{escape(thing.title)}</h3><p>Done on: {done_on}</p></a>"
    )


def modal(content: str, close_href: str) -> str:
    """Overlay shell; clicking the backdrop or the x closes it."""
    return (
        f'<div class="modal" onclick="if (event.target === this) '
        f"window.location.href='{escape(close_href)}'\">"
        f'<div class="panel"><a class="button ghost" href="{escape(close_href)}" '
        f'aria-label="Close">&times;</a>{content}</div></div>'
    )


def thing_details(thing: Thing) -> str:
    parts = [f"<h2>{escape(thing.title)}</h2>"]
    if thing.photo_url:
        parts.append(
            f'<img src="{escape(thing.photo_url)}" alt="{escape(thing.title)}" />'
        )
    if thing.notes:
        parts.append(f"<p>{escape(thing.notes)}</p>")
    parts.append(f"<p>Added on: {thing.created_at.date().isoformat()}</p>")
    if thing.done_at:
        parts.append(f"<p>Done on: {thing.done_at.date().isoformat()}</p>")
    if thing.added_by:
        parts.append(f"<p>Added by: {escape(thing.added_by)}</p>")
    return "".join(parts)


def loading_message(text: str) -> str:
    return f'<main><p class="loading">{escape(text)}</p></main>'


def error_block(message: str, action_label: str, action_href: str) -> str:
    """Error text with a single retry or go-back action."""
    return (
        f'<main><p class="error">{escape(message)}</p>'
        f"{button(action_label, href=action_href)}</main>"
    )
