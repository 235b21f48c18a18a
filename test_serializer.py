"""
Tests for serialization, structural round-trips and the Document wrapper.

BeautifulSoup (html.parser backend) is used as an independent reader of our
output, to check that the markup we write nests the way we think it does.
"""

from bs4 import BeautifulSoup

from html_builder.node import Node, NodeKind
from html_builder.serializer import serialize, serialize_forest, render_attributes
from html_builder.tree_builder import parse
from html_builder.document import Document


def shape(node: Node):
    """Structure of a tree: kinds, tags, attributes and stripped text."""
    return (
        node.kind,
        node.tag,
        dict(node.attributes),
        node.text.strip(),
        [shape(c) for c in node.children],
    )


def test_regular_element():
    assert serialize(Node.element("p", text="Hi")) == "<p>\nHi\n</p>\n"


def test_void_element():
    node = Node.void("img", {"src": "a.png", "alt": ""})
    assert serialize(node) == '<img src="a.png" alt/>'


def test_doctype():
    assert serialize(Node.doctype("html")) == "<!DOCTYPE html>"


def test_fragment_concatenates_children():
    node = Node.fragment([Node.void("br"), Node.text_node("x"), Node.element("i")])
    assert serialize(node) == "<br/>x<i>\n\n</i>\n"


def test_parsed_tree():
    nodes = parse("<div><p>Hi</p></div>")
    assert serialize(nodes[0]) == "<div>\n\n<p>\n\nHi</p>\n</div>\n"


def test_attribute_order():
    node = Node.element("a", {"href": "x", "class": "c"})
    assert serialize(node, sort_attributes=False) == '<a href="x" class="c">\n\n</a>\n'
    assert serialize(node, sort_attributes=True) == '<a class="c" href="x">\n\n</a>\n'
    assert render_attributes({"b": "", "a": "1"}, sort_attributes=True) == ' a="1" b'


def test_attribute_quoting():
    assert render_attributes({"title": 'say "hi"'}) == """ title='say "hi"'"""
    assert render_attributes({"alt": "it's"}) == ' alt="it\'s"'
    assert render_attributes({"v": "a\"b'c"}) == ' v="a&quot;b\'c"'


def test_quoted_attribute_values_round_trip():
    first = parse("""<a title='say "hi"' alt="it's">x</a>""")
    second = parse(serialize_forest(first))
    assert second[0].attributes == {"title": 'say "hi"', "alt": "it's"}
    assert [shape(n) for n in second] == [shape(n) for n in first]


def test_serialize_forest():
    nodes = parse("<!DOCTYPE html><p>a</p>")
    assert serialize_forest(nodes) == "<!DOCTYPE html><p>\n\na</p>\n"


def test_round_trip_keeps_structure():
    source = (
        '<!DOCTYPE html>'
        '<html lang="en">'
        '<head><meta charset="utf-8"><title>Page</title></head>'
        '<body class="main" data-x="1">'
        '<ul id="list"><li>one</li><li>two <b>bold</b></li></ul>'
        '<img src="a.png" alt="A"><input disabled type="text"/>'
        '<custom-widget/>'
        '</body>'
        '</html>'
    )
    first = parse(source)
    second = parse(serialize_forest(first))
    assert [shape(n) for n in second] == [shape(n) for n in first]


def test_output_read_by_beautifulsoup():
    nodes = parse('<div id="box"><p class="lead">Hi <a href="/x">there</a></p><br></div>')
    soup = BeautifulSoup(serialize_forest(nodes), "html.parser")

    box = soup.find("div", id="box")
    p = box.find("p")
    assert p["class"] == ["lead"]
    assert p.find("a")["href"] == "/x"
    assert p.get_text(strip=True) == "Hithere"
    assert box.find("br") is not None


def test_document_default():
    document = Document()
    assert document.to_string() == "<!DOCTYPE html>\n<html>\n\n</html>\n"


def test_document_add_child():
    document = Document()
    assert document.add_child(Node.element("body", text="x")) is True
    assert document.add_child(None) is False
    assert str(document) == "<!DOCTYPE html>\n<html>\n\n<body>\nx\n</body>\n</html>\n"


def test_document_from_forest():
    document = Document.from_forest(parse("<!DOCTYPE html5><html><body></body></html><p>late</p>"))
    assert document.doctype == "html5"
    assert document.root.tag == "html"
    assert [c.tag for c in document.root.children] == ["body", "p"]
    forest = document.as_forest()
    assert forest[0].kind == NodeKind.DOCTYPE
    assert forest[1] is document.root
