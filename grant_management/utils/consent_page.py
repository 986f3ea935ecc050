from html import escape

from grant_management.schemas.consent import ConsentView

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Authorize {client_id}</title></head>
<body>
<h1>{client_id} is requesting access</h1>
<p>Scope: <code>{scope}</code></p>
<p>Action: <code>{action}</code></p>
<ul>
{details}
</ul>
<form id="consent" data-consent-endpoint="{endpoint}" data-request-id="{request_id}">
<button type="submit">Approve</button>
</form>
<script type="application/json" id="consent-data">{payload}</script>
</body>
</html>
"""


def _render_detail(view) -> str:
    entries = ", ".join(
        f"{escape(entry.name)}{' (required)' if entry.essential else ''}" for entry in view.entries
    )
    return (
        f"<li data-type=\"{escape(view.type)}\" data-risk=\"{escape(view.risk_level)}\">"
        f"<strong>{escape(view.title)}</strong> {escape(view.identifier)}: "
        f"{escape(view.description)}"
        f"{' [' + entries + ']' if entries else ''}</li>"
    )


def render_consent_page(view: ConsentView) -> str:
    # the JSON island must not be able to close the script element
    payload = view.model_dump_json(by_alias=True).replace("</", "<\\/")
    return _PAGE.format(
        client_id=escape(view.request.client_id),
        scope=escape(view.request.scope),
        action=escape(view.request.grant_management_action),
        details="\n".join(_render_detail(detail) for detail in view.authorization_details),
        endpoint=escape(view.consent_endpoint),
        request_id=escape(view.request_id),
        payload=payload,
    )
