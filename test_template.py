"""
Tests for placeholder substitution, the TemplateEngine, the template cache
and the run_render CLI.
"""

import json
import logging
import sys

import pytest

from html_builder.template import (
    substitute,
    substitute_recursive,
    find_placeholders,
    collect_placeholders,
)
from html_builder.tree_builder import parse
from html_builder.serializer import serialize
from html_builder.node import Node
from html_builder.main import TemplateEngine
from html_builder.template_cache import TemplateCache, flatten_forest, unflatten_forest
from html_builder.config import Settings
from html_builder.exceptions import UnterminatedTagError
from html_builder.logger import setup_logger


# --- substitute ---

def test_substitute_basic():
    assert substitute("Hello {{name}}!", {"name": "World"}) == "Hello World!"


def test_substitute_missing_key_left_alone():
    assert substitute("{{missing}}", {}) == "{{missing}}"
    assert substitute("{{a}} {{b}}", {"a": "1"}) == "1 {{b}}"


def test_substitute_every_occurrence():
    assert substitute("{{x}}-{{x}}-{{x}}", {"x": "7"}) == "7-7-7"


def test_substitute_does_not_rescan_inserted_text():
    """A value containing its own placeholder is inserted once, not expanded forever."""
    assert substitute("[{{a}}]", {"a": "{{a}}{{a}}"}) == "[{{a}}{{a}}]"
    assert substitute("{{a}}{{a}}", {"a": ""}) == ""


def test_substitute_non_string_values():
    assert substitute("n={{n}}", {"n": 3}) == "n=3"


def test_substitute_recursive_text_and_attributes():
    root = parse('<a href="/users/{{id}}" title="{{name}}">{{name}}<b>{{role}}</b></a>')[0]
    substitute_recursive(root, {"id": "7", "name": "Ann", "role": "admin"})

    assert root.attributes == {"href": "/users/7", "title": "Ann"}
    assert root.text_content == "Ann"
    assert root.children[1].text_content == "admin"


def test_substitute_recursive_on_own_text():
    node = Node.element("p", text="Dear {{who}}", children=[Node.void("img", {"alt": "{{who}}"})])
    substitute_recursive(node, {"who": "Bo"})
    assert node.text == "Dear Bo"
    assert node.children[0].attributes["alt"] == "Bo"


def test_template_rendered_with_two_parameter_sets():
    """Copies of one parsed template render independently."""
    template = parse("<p>Hi {{name}}</p>")[0]

    first = template.copy()
    second = template.copy()
    substitute_recursive(first, {"name": "A"})
    substitute_recursive(second, {"name": "B"})

    assert first.text_content == "Hi A"
    assert second.text_content == "Hi B"
    assert template.text_content == "Hi {{name}}"


def test_find_and_collect_placeholders():
    assert find_placeholders("{{a}} and {{b}} and {{a}}") == ["a", "b", "a"]
    root = parse('<div class="{{cls}}">{{title}}<p>{{body}} {{title}}</p></div>')[0]
    assert collect_placeholders(root) == ["cls", "title", "body"]


# --- TemplateEngine ---

@pytest.fixture
def engine():
    return TemplateEngine(settings=Settings(max_depth=100, sort_attributes=False))


def test_engine_render(engine):
    result = engine.render('<!DOCTYPE html><p class="{{c}}">{{x}}</p>', {"x": "1", "c": "k"})
    assert result.html == '<!DOCTYPE html><p class="k">\n\n1</p>\n'
    assert result.doctype == "html"
    assert result.unresolved == []


def test_engine_reports_unresolved(engine):
    result = engine.render("<p>{{x}} {{y}}</p>", {"x": "1"})
    assert result.unresolved == ["y"]
    assert "{{y}}" in result.html


def test_engine_render_many(engine):
    results = engine.render_many("<b>{{v}}</b>", [{"v": "one"}, {"v": "two"}])
    assert [r.html for r in results] == ["<b>\n\none</b>\n", "<b>\n\ntwo</b>\n"]


def test_engine_render_file(engine, tmp_path):
    path = tmp_path / "page.html"
    path.write_text("<html>\n  <body>\n    <h1>{{title}}</h1>\n  </body>\n</html>\n", encoding="utf-8")
    result = engine.render_file(path, {"title": "Welcome"})
    assert result.html == "<html>\n\n<body>\n\n<h1>\n\nWelcome</h1>\n</body>\n</html>\n"


def test_engine_propagates_parse_errors(engine):
    with pytest.raises(UnterminatedTagError):
        engine.render("<p>unfinished <b")


def test_engine_sorted_attributes():
    engine = TemplateEngine(settings=Settings(sort_attributes=True))
    assert engine.render('<i z="1" a="2"></i>').html == '<i a="2" z="1">\n\n</i>\n'


def test_engine_applies_configured_log_level():
    package_logger = logging.getLogger("html_builder")
    try:
        TemplateEngine(settings=Settings(log_level="WARNING"))
        assert package_logger.level == logging.WARNING
        assert all(h.level == logging.WARNING for h in package_logger.handlers)

        # An explicit level wins over the configured one
        TemplateEngine(settings=Settings(log_level="WARNING"), log_level="DEBUG")
        assert package_logger.level == logging.DEBUG
    finally:
        setup_logger(level="INFO")


def test_deepest_accepted_tree_survives_every_operation(tmp_path):
    """Copy, serialize, substitution and the cache all handle max_depth nesting."""
    depth = Settings.model_fields["max_depth"].default
    html = "<div>" * depth + "{{v}}"
    expected = "<div>\n\n" * depth + "x" + "</div>\n" * depth

    template = parse(html, max_depth=depth)[0]
    duplicate = template.copy()
    substitute_recursive(duplicate, {"v": "x"})
    assert serialize(duplicate, sort_attributes=False) == expected
    assert serialize(template, sort_attributes=False) == expected.replace("x", "{{v}}")

    settings = Settings(max_depth=depth, sort_attributes=False)
    engine = TemplateEngine(settings=settings, cache=TemplateCache(tmp_path))
    assert engine.render(html, {"v": "x"}).html == expected
    assert engine.render(html, {"v": "x"}).html == expected

    # A new cache instance has to read the entry back from disk
    reloaded = TemplateEngine(settings=settings, cache=TemplateCache(tmp_path))
    assert [r.html for r in reloaded.render_many(html, [{"v": "x"}])] == [expected]


# --- TemplateCache ---

def test_flatten_and_unflatten_forest():
    nodes = parse('<!DOCTYPE html><ul><li a="1">x<br></li><li></li></ul><p>y</p>')
    entries = flatten_forest(nodes)

    assert [e["child_count"] for e in entries] == [0, 2, 2, 0, 0, 0, 1, 0]
    assert "children" not in entries[1]
    rebuilt = unflatten_forest(entries)
    assert [n.model_dump() for n in rebuilt] == [n.model_dump() for n in nodes]


def test_unflatten_rejects_malformed_entries():
    entries = flatten_forest(parse("<ul><li>x</li></ul>"))
    with pytest.raises(ValueError):
        unflatten_forest(entries[:-1])

    void_with_children = [{"kind": "void", "tag": "br", "child_count": 1}, {"kind": "text", "text": "x", "child_count": 0}]
    with pytest.raises(ValueError):
        unflatten_forest(void_with_children)


def test_cache_round_trip(tmp_path):
    cache = TemplateCache(tmp_path / "cache")
    html = '<!DOCTYPE html><p id="x">{{v}}<br></p>'
    nodes = parse(html)

    key = cache.put(html, nodes, source_name="page.html")
    assert key.startswith("page-")
    assert (tmp_path / "cache" / f"{key}.json").exists()
    assert cache.exists(html, source_name="page.html")

    # A fresh instance has to read the file back
    loaded = TemplateCache(tmp_path / "cache").get(html, source_name="page.html")
    assert [n.model_dump() for n in loaded] == [n.model_dump() for n in nodes]


def test_cache_key_depends_on_text(tmp_path):
    cache_key = TemplateCache(tmp_path)._generate_cache_key
    assert cache_key("<p>A</p>", "index.html") != cache_key("<p>B</p>", "index.html")
    assert cache_key("<p>A</p>", "index.html") == cache_key("<p>A</p>", "index.html")
    assert cache_key("<p>A</p>") != cache_key("<p>A</p>", "index.html")


def test_cache_hands_out_copies(tmp_path):
    cache = TemplateCache(tmp_path)
    html = "<p>{{v}}</p>"
    cache.put(html, parse(html))

    first = cache.get(html)
    substitute_recursive(first[0], {"v": "changed"})

    second = cache.get(html)
    assert second[0].text_content == "{{v}}"


def test_cache_miss_and_corrupt_entry(tmp_path):
    cache = TemplateCache(tmp_path)
    assert cache.get("<p></p>", source_name="nothing") is None

    key = cache._generate_cache_key("<p></p>", source_name="broken")
    (tmp_path / f"{key}.json").write_text("{not json", encoding="utf-8")
    assert cache.get("<p></p>", source_name="broken") is None


def test_cache_delete_and_clear(tmp_path):
    cache = TemplateCache(tmp_path)
    cache.put("<a></a>", parse("<a></a>"), source_name="a")
    cache.put("<b></b>", parse("<b></b>"), source_name="b")

    assert cache.delete("<a></a>", source_name="a") is True
    assert cache.delete("<a></a>", source_name="a") is False
    assert cache.clear() == 1
    assert not cache.exists("<b></b>", source_name="b")


def test_engine_uses_cache(tmp_path, monkeypatch):
    cache = TemplateCache(tmp_path)
    engine = TemplateEngine(settings=Settings(), cache=cache)

    first = engine.render("<p>{{n}}</p>", {"n": "1"}, source_name="tpl")
    assert first.html == "<p>\n\n1</p>\n"
    assert cache.exists("<p>{{n}}</p>", source_name="tpl")

    # Same name and text: served from the cache without parsing
    with monkeypatch.context() as m:
        m.setattr(engine, "parse", lambda html: pytest.fail("template parsed twice"))
        assert engine.render("<p>{{n}}</p>", {"n": "2"}, source_name="tpl").html == "<p>\n\n2</p>\n"

    # Same name, edited text: parsed again
    edited = engine.render("<div>{{n}}</div>", {"n": "3"}, source_name="tpl")
    assert edited.html == "<div>\n\n3</div>\n"


def test_engine_cache_keeps_same_named_files_apart(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    first = tmp_path / "a" / "index.html"
    second = tmp_path / "b" / "index.html"
    first.write_text("<p>A</p>", encoding="utf-8")
    second.write_text("<p>B</p>", encoding="utf-8")

    engine = TemplateEngine(settings=Settings(), cache=TemplateCache(tmp_path / "cache"))
    assert engine.render_file(first).html == "<p>\n\nA</p>\n"
    assert engine.render_file(second).html == "<p>\n\nB</p>\n"

    first.write_text("<p>A2</p>", encoding="utf-8")
    assert engine.render_file(first).html == "<p>\n\nA2</p>\n"


# --- CLI ---

def test_cli_renders_file(tmp_path, monkeypatch, capsys):
    import run_render

    template = tmp_path / "hello.html"
    template.write_text("<p>Hello {{name}} from {{place}}</p>", encoding="utf-8")
    params = tmp_path / "params.json"
    params.write_text(json.dumps({"name": "World", "place": "json"}), encoding="utf-8")

    monkeypatch.setattr(sys, "argv", [
        "run_render.py", str(template), "--params", str(params), "--param", "place=cli",
    ])
    assert run_render.main() == 0
    assert capsys.readouterr().out == "<p>\n\nHello World from cli</p>\n"


def test_cli_reports_parse_error(tmp_path, monkeypatch, capsys):
    import run_render

    template = tmp_path / "bad.html"
    template.write_text("<div></span></div>", encoding="utf-8")
    out_file = tmp_path / "out.html"

    monkeypatch.setattr(sys, "argv", ["run_render.py", str(template), "-o", str(out_file)])
    assert run_render.main() == 1
    assert "expected </div> but found </span>" in capsys.readouterr().err
    assert out_file.read_text(encoding="utf-8") == ""
