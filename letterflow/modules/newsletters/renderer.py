"""
Newsletter Renderer
===================

Converts a newsletter document (list of element dicts) into a complete HTML
email with inline CSS. Element styles use the editor's camelCase property
names and are translated to CSS declarations here.
"""

import html
import re
import logging
from flask import current_app

logger = logging.getLogger(__name__)

# Default email frame style
DEFAULT_STYLE = {
    'bg': '#f4f4f5',
    'card_bg': '#ffffff',
    'text': '#1f2937',
    'text_secondary': '#6b7280',
    'border': '#e5e7eb',
    'btn_bg': '#3b82f6',
    'btn_text': '#ffffff',
    'footer_bg': '#f9fafb',
    'font': 'Arial, sans-serif',
}

SOCIAL_LABELS = {
    'twitter': 'Twitter',
    'facebook': 'Facebook',
    'instagram': 'Instagram',
    'linkedin': 'LinkedIn',
}


def _get_style():
    """Get email style from app config or defaults"""
    try:
        custom = current_app.config.get('EMAIL_STYLE', {})
        style = dict(DEFAULT_STYLE)
        style.update(custom)
        return style
    except RuntimeError:
        return dict(DEFAULT_STYLE)


def _get_brand():
    """Get brand info from app config"""
    try:
        website = current_app.config.get('EMAIL_WEBSITE_URL', '#')
        return {
            'name': current_app.config.get('EMAIL_BRAND_NAME', 'Letterflow'),
            'url': website,
            'unsubscribe_url': website.rstrip('/') + '/unsubscribe',
        }
    except RuntimeError:
        return {'name': 'Letterflow', 'url': '#', 'unsubscribe_url': '#'}


def resolve_variables(subscriber):
    """Build merge-tag values for one subscriber row.

    Keys match the personalization catalog ids. Fields the subscriber has no
    value for are left out so the tag's default text stays in place.
    """
    variables = {
        'firstName': subscriber.get('first_name'),
        'lastName': subscriber.get('last_name'),
        'email': subscriber.get('email'),
        'company': subscriber.get('company'),
        'signupDate': (subscriber.get('subscribed_at') or '')[:10] or None,
    }
    return {key: str(value) for key, value in variables.items() if value}


def substitute_personalization(element, variables):
    """Replace recorded merge-tag defaults in element content with real values"""
    content = element.get('content') or ''
    for field in element.get('personalizedFields') or []:
        value = variables.get(field.get('fieldName'))
        default = field.get('defaultValue')
        if value is not None and default:
            content = content.replace(default, value)
    return content


def css(style, **defaults):
    """Turn an editor style dict (camelCase keys) into an inline CSS string"""
    merged = dict(defaults)
    merged.update(style or {})
    declarations = []
    for key, value in merged.items():
        if value is None or value == '':
            continue
        prop = re.sub(r'([A-Z])', lambda m: '-' + m.group(1).lower(), key)
        declarations.append(f'{prop}:{value}')
    return ';'.join(declarations)


def render_element(element, style, variables=None):
    """Render a single element to HTML with inline CSS"""
    variables = variables or {}
    element_type = element.get('type')
    element_style = element.get('style') or {}

    if element_type == 'heading':
        content = html.escape(substitute_personalization(element, variables))
        return f'<h2 style="{css(element_style, margin="0", color=style["text"], fontFamily=style["font"])}">{content}</h2>'

    elif element_type == 'text':
        content = html.escape(substitute_personalization(element, variables))
        return f'<p style="{css(element_style, margin="0", color=style["text"], fontFamily=style["font"])}">{content}</p>'

    elif element_type == 'passage':
        content = html.escape(substitute_personalization(element, variables)).replace('\n', '<br />')
        return f'<div style="{css(element_style, color=style["text"], fontFamily=style["font"])}">{content}</div>'

    elif element_type == 'image':
        src = html.escape(element.get('src') or '', quote=True)
        if not src:
            return ''
        alt = html.escape(element.get('alt') or '', quote=True)
        return f'<img src="{src}" alt="{alt}" style="{css(element_style, display="block", maxWidth="100%", height="auto")}" />'

    elif element_type == 'button':
        label = html.escape(element.get('content') or 'Click Here')
        url = html.escape(element.get('url') or '#', quote=True)
        align = element_style.get('textAlign', 'center')
        link_style = {k: v for k, v in element_style.items() if k not in ('textAlign', 'margin')}
        link_css = css(
            link_style,
            display='inline-block',
            backgroundColor=style['btn_bg'],
            color=style['btn_text'],
            padding='10px 20px',
            textDecoration='none',
            borderRadius='4px',
            fontFamily=style['font'],
        )
        return f'''<table border="0" cellpadding="0" cellspacing="0" width="100%" style="border-collapse:collapse;">
                <tr><td align="{align}" style="text-align:{align};padding:5px 0;">
                    <a href="{url}" style="{link_css}" target="_blank">{label}</a>
                </td></tr>
            </table>'''

    elif element_type == 'divider':
        return f'<hr style="{css(element_style, border="none", borderTop="1px solid " + style["border"], margin="16px 0")}" />'

    elif element_type == 'spacer':
        height = element.get('height') or '20px'
        return f'<div style="height:{html.escape(str(height), quote=True)};line-height:{html.escape(str(height), quote=True)};">&nbsp;</div>'

    elif element_type == 'social':
        links = []
        for link in element.get('socialLinks') or []:
            platform = link.get('platform', '')
            label = html.escape(SOCIAL_LABELS.get(platform, platform.title()))
            url = html.escape(link.get('url') or '#', quote=True)
            links.append(f'<a href="{url}" style="color:{style["text_secondary"]};margin:0 8px;" target="_blank">{label}</a>')
        return f'<div style="{css(element_style, textAlign="center")}">{"".join(links)}</div>'

    elif element_type == 'code':
        # Raw HTML supplied by the author
        return element.get('content') or ''

    elif element_type == 'columns':
        columns = element.get('columns') or []
        if not columns:
            return ''
        width = f'{100 // len(columns)}%'
        cells = []
        for column in columns:
            inner = '\n'.join(render_element(child, style, variables) for child in column)
            cells.append(f'<td valign="top" width="{width}" style="padding:0 10px;">{inner}</td>')
        table_style = {k: v for k, v in element_style.items() if k not in ('display', 'gap')}
        return f'''<table border="0" cellpadding="0" cellspacing="0" width="100%" style="{css(table_style, borderCollapse="collapse")}">
                <tr>{"".join(cells)}</tr>
            </table>'''

    logger.warning(f"Skipping element with unknown type: {element_type}")
    return ''


def _add_utm_params(body, newsletter_name):
    """Auto-tag href URLs with UTM parameters for newsletter tracking"""
    if not newsletter_name:
        return body
    slug = re.sub(r'[^a-z0-9]+', '-', newsletter_name.lower()).strip('-')

    def _tag_url(match):
        url = match.group(1)
        # Skip mailto:, tel:, and anchor-only links
        if url.startswith(('mailto:', 'tel:', '#')):
            return match.group(0)
        separator = '&amp;' if '?' in url else '?'
        return f'href="{url}{separator}utm_source=newsletter&amp;utm_medium=email&amp;utm_campaign={slug}"'

    return re.sub(r'href="([^"]+)"', _tag_url, body)


def render_newsletter(elements, variables=None, preview_text='', newsletter_name=None):
    """Render a full newsletter into a complete HTML email.

    Args:
        elements: list of element dicts (the document)
        variables: merge-tag values keyed by personalization field id
        preview_text: inbox preview line, rendered as hidden preheader text
        newsletter_name: newsletter name for UTM tagging (optional)

    Returns:
        Complete HTML email string with all inline CSS
    """
    variables = variables or {}
    style = _get_style()
    brand = _get_brand()

    body_html = '\n            '.join(render_element(e, style, variables) for e in elements)
    if newsletter_name:
        body_html = _add_utm_params(body_html, newsletter_name)

    preheader = ''
    if preview_text:
        preheader = (f'<div style="display:none;max-height:0;overflow:hidden;">'
                     f'{html.escape(preview_text)}</div>')

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(brand['name'])}</title>
</head>
<body style="margin:0;padding:0;background-color:{style['bg']};font-family:{style['font']};">
    {preheader}
    <div style="max-width:600px;margin:0 auto;padding:20px;">
        <div style="background:{style['card_bg']};border:1px solid {style['border']};padding:24px;">
            {body_html}
        </div>
        <div style="background:{style['footer_bg']};padding:16px;text-align:center;font-size:12px;color:{style['text_secondary']};">
            <p style="margin:0;">{html.escape(brand['name'])}</p>
            <p style="margin:4px 0 0 0;"><a href="{brand['unsubscribe_url']}" style="color:{style['text_secondary']};">Unsubscribe</a> &middot; <a href="{brand['url']}" style="color:{style['text_secondary']};">Website</a></p>
        </div>
    </div>
</body>
</html>'''
