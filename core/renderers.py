"""
Core — Response Renderer

Wraps all successful responses in the standard envelope:
  { "success": true, "data": ..., "meta": ... }

Payloads that already carry ``success`` (bulk results, action
responses with a ``message``) are rendered unchanged.

@file core/renderers.py
"""

from rest_framework.renderers import JSONRenderer

PAGE_META_KEYS = ('count', 'page_size', 'total_pages', 'next', 'previous')


def _is_page(data) -> bool:
    return isinstance(data, dict) and 'results' in data and 'count' in data


class StandardJSONRenderer(JSONRenderer):
    """Wraps successful API responses in a consistent envelope."""

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = renderer_context.get('response') if renderer_context else None

        if response is not None and response.status_code >= 400:
            return super().render(data, accepted_media_type, renderer_context)

        if isinstance(data, dict) and 'success' in data:
            return super().render(data, accepted_media_type, renderer_context)

        if _is_page(data):
            envelope = {
                'success': True,
                'data': data['results'],
                'meta': {key: data.get(key) for key in PAGE_META_KEYS},
            }
        else:
            envelope = {'success': True, 'data': data}

        return super().render(envelope, accepted_media_type, renderer_context)
