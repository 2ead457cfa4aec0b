"""
Unit tests for the tolerant tag lookup helpers.
"""
import unittest

from bank_ingest.utils.tag_extractor import (
    all_tag_contents,
    attribute,
    child_elements,
    first_tag_content,
    has_tag,
    tag_content,
)


class TestTagContent(unittest.TestCase):
    def test_first_match_trimmed(self):
        xml = "<Ntry><Amt>  12.50 </Amt><Amt>99</Amt></Ntry>"
        self.assertEqual(tag_content(xml, "Amt"), "12.50")

    def test_tag_with_attributes(self):
        xml = '<Amt Ccy="EUR">100.00</Amt>'
        self.assertEqual(tag_content(xml, "Amt"), "100.00")

    def test_name_boundary(self):
        xml = "<BookgDt><DtTm>2024-01-15T10:00:00</DtTm></BookgDt>"
        self.assertIsNone(tag_content(xml, "Dt"))
        self.assertEqual(tag_content(xml, "DtTm"), "2024-01-15T10:00:00")

    def test_case_insensitive(self):
        self.assertEqual(tag_content("<iznos>5,00</IZNOS>", "Iznos"), "5,00")

    def test_self_closing_is_empty(self):
        self.assertEqual(tag_content("<Stavka><Opis/></Stavka>", "Opis"), "")

    def test_missing_and_malformed(self):
        self.assertIsNone(tag_content("<a>1</a>", "b"))
        self.assertIsNone(tag_content("<Amt>12.50", "Amt"))
        self.assertIsNone(tag_content(None, "Amt"))
        self.assertIsNone(tag_content("", "Amt"))

    def test_nested_content_returned_raw(self):
        xml = "<Dbtr><Nm>ACME</Nm></Dbtr>"
        self.assertEqual(tag_content(xml, "Dbtr"), "<Nm>ACME</Nm>")


class TestAllTagContents(unittest.TestCase):
    def test_document_order(self):
        xml = "<S><Ntry>a</Ntry><NtryRef>x</NtryRef><Ntry>b</Ntry><Ntry> c </Ntry></S>"
        self.assertEqual(all_tag_contents(xml, "Ntry"), ["a", "b", "c"])

    def test_no_matches(self):
        self.assertEqual(all_tag_contents("<S/>", "Ntry"), [])
        self.assertEqual(all_tag_contents(None, "Ntry"), [])


class TestFirstTagContent(unittest.TestCase):
    def test_fallback_order(self):
        xml = "<Stavka><Svrha>Porez</Svrha><Napomena>x</Napomena></Stavka>"
        self.assertEqual(first_tag_content(xml, ("Opis", "Svrha", "Napomena")), "Porez")

    def test_empty_variant_skipped(self):
        xml = "<Stavka><Opis></Opis><Svrha>Kirija</Svrha></Stavka>"
        self.assertEqual(first_tag_content(xml, ("Opis", "Svrha")), "Kirija")

    def test_none_found(self):
        self.assertIsNone(first_tag_content("<Stavka/>", ("Opis", "Svrha")))


class TestAttribute(unittest.TestCase):
    def test_double_and_single_quotes(self):
        self.assertEqual(attribute('<Amt Ccy="RSD">1</Amt>', "Ccy"), "RSD")
        self.assertEqual(attribute("<Amt Ccy='EUR'>1</Amt>", "Ccy"), "EUR")

    def test_attribute_name_boundary(self):
        xml = '<Amt XCcy="USD" Ccy="EUR">1</Amt>'
        self.assertEqual(attribute(xml, "Ccy"), "EUR")

    def test_missing(self):
        self.assertIsNone(attribute("<Amt>1</Amt>", "Ccy"))
        self.assertIsNone(attribute(None, "Ccy"))


def test_child_elements_direct_children_only():
    xml = """
    <!-- comment -->
    <Red><Datum>2024-05-02</Datum></Red>
    <Red><Red>nested</Red></Red>
    <Prazan/>
    """
    children = child_elements(xml)
    assert [name for name, _ in children] == ["Red", "Red", "Prazan"]
    assert children[0][1] == "<Datum>2024-05-02</Datum>"
    assert children[1][1] == "<Red>nested</Red>"
    assert children[2][1] == ""


def test_has_tag():
    assert has_tag("<Izvod>\n</Izvod>", "Izvod")
    assert has_tag("<Izvod broj='1'>", "Izvod")
    assert not has_tag("<IzvodRacuna>", "Izvod")
    assert not has_tag(None, "Izvod")
