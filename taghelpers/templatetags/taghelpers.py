"""Template tags that post-process rendered markup.

Usage::

    {% load taghelpers %}
    {% bold %}Important{% endbold %}
    {% hideparent not show %}<div class="alert">{{ message }}</div>{% endhideparent %}
    {% integrity %}
      <link rel="stylesheet" href="/css/site.css" integrity>
      <script src="~/js/site.js" integrity="sha384"></script>
    {% endintegrity %}
    <link rel="stylesheet" href="/css/site.css" integrity="{% sri_integrity '/css/site.css' %}">
"""

from django import template
from django.apps import apps
from django.urls import get_script_prefix
from django.utils.html import format_html
from django.utils.safestring import mark_safe

from common.logging import get_logger
from taghelpers.markup import rewrite_attributes, strip_wrapper

register = template.Library()
logger = get_logger(__name__)


def _integrity_resolver():
    return apps.get_app_config("taghelpers").get_integrity_resolver()


def _parse_block(parser, token, end_tag, *, max_args):
    bits = token.split_contents()
    if len(bits) - 1 > max_args:
        raise template.TemplateSyntaxError(
            f"'{bits[0]}' takes at most {max_args} argument(s)"
        )
    nodelist = parser.parse((end_tag,))
    parser.delete_first_token()
    return bits, nodelist


class BoldNode(template.Node):
    def __init__(self, nodelist):
        self.nodelist = nodelist

    def render(self, context):
        return format_html("<strong>{}</strong>", self.nodelist.render(context))


class _Negated:
    def __init__(self, expression):
        self.expression = expression

    def resolve(self, context, ignore_failures=False):
        return not self.expression.resolve(context, ignore_failures=ignore_failures)


class HideParentNode(template.Node):
    def __init__(self, condition, nodelist):
        self.condition = condition
        self.nodelist = nodelist

    def render(self, context):
        content = self.nodelist.render(context)
        if not self.condition.resolve(context, ignore_failures=True):
            return content
        return mark_safe(strip_wrapper(content))


def _app_relative_urls(process):
    """Wrap ``process`` so ``~/`` asset URLs point at the script prefix."""

    def rewrite(attributes):
        updated = dict(process(attributes))
        for name in ("src", "href"):
            value = updated.get(name)
            if value and value.startswith("~/"):
                updated[name] = get_script_prefix() + value[2:]
        return updated

    return rewrite


class IntegrityNode(template.Node):
    def __init__(self, nodelist):
        self.nodelist = nodelist

    def render(self, context):
        content = self.nodelist.render(context)
        try:
            resolver = _integrity_resolver()
            rewrite = _app_relative_urls(resolver.process)
            return mark_safe(rewrite_attributes(content, rewrite))
        except Exception:
            logger.exception("integrity.block_failed")
            return content


@register.tag("bold")
def do_bold(parser, token):
    """Wrap the block in ``<strong>``."""
    _, nodelist = _parse_block(parser, token, "endbold", max_args=0)
    return BoldNode(nodelist)


@register.tag("hideparent")
def do_hideparent(parser, token):
    """Replace the block's wrapper element with a bare ``<span>`` when truthy."""
    bits, nodelist = _parse_block(parser, token, "endhideparent", max_args=2)
    if len(bits) == 1:
        raise template.TemplateSyntaxError("'hideparent' requires a condition")
    if len(bits) == 3:
        if bits[1] != "not":
            raise template.TemplateSyntaxError(
                "'hideparent' accepts a variable optionally preceded by 'not'"
            )
        return HideParentNode(_Negated(parser.compile_filter(bits[2])), nodelist)
    return HideParentNode(parser.compile_filter(bits[1]), nodelist)


@register.tag("integrity")
def do_integrity(parser, token):
    """Fill ``integrity`` attributes of ``<script>``/``<link>`` in the block."""
    _, nodelist = _parse_block(parser, token, "endintegrity", max_args=0)
    return IntegrityNode(nodelist)


@register.simple_tag
def sri_integrity(path, algorithm=""):
    """Return the integrity value for ``path``; unknown selectors pass through."""
    try:
        value = _integrity_resolver().resolve(algorithm, path)
    except Exception:
        logger.exception("integrity.tag_failed", asset=path)
        return ""
    return algorithm if value is None else value
