"""Unit tests for the HTML invoice order number rewrite."""

import pytest

from modules.invoice_html import replace_order_id_in_html


class TestReplaceOrderIdInHtml:
    """Test which occurrences are rewritten."""

    def test_title_and_headings(self):
        html = "<title>Invoice for Order #1869</title><h1>Order # 1869</h1>"
        result = replace_order_id_in_html(html, "1869", "491655")
        assert result == "<title>Invoice for Order #491655</title><h1>Order # 491655</h1>"

    def test_order_colon_forms(self):
        html = "<td>Order: 1869</td><td>Order:#1869</td>"
        result = replace_order_id_in_html(html, "1869", "491655")
        assert result == "<td>Order: 491655</td><td>Order:#491655</td>"

    def test_standalone_hash(self):
        assert replace_order_id_in_html("<b>#1869</b>", "1869", "491655") == "<b>#491655</b>"

    def test_longer_ids_untouched(self):
        html = "<p>Order #18690 and #18691</p>"
        assert replace_order_id_in_html(html, "1869", "491655") == html

    def test_unrelated_numbers_untouched(self):
        html = "<p>Qty 1869</p>"
        assert replace_order_id_in_html(html, "1869", "491655") == html

    def test_external_id_starting_with_local_id_rewritten_once(self):
        html = "<h1>Invoice for Order #1869</h1><p>Order #1869</p><td>Order: 1869</td><b>#1869</b>"
        result = replace_order_id_in_html(html, "1869", "1869-B")
        assert result == (
            "<h1>Invoice for Order #1869-B</h1><p>Order #1869-B</p>"
            "<td>Order: 1869-B</td><b>#1869-B</b>"
        )

    def test_every_occurrence_rewritten(self):
        html = "<p>Order #1869</p><p>Order #1869</p>"
        assert replace_order_id_in_html(html, "1869", "491655") == (
            "<p>Order #491655</p><p>Order #491655</p>"
        )

    def test_external_id_escaped(self):
        result = replace_order_id_in_html("Order #1869", "1869", "<b>X</b>")
        assert "<b>" not in result

    @pytest.mark.parametrize("local_id, external_id", [
        ("1869", None),
        ("1869", ""),
        (None, "491655"),
        ("1869", "1869"),
    ])
    def test_no_op_cases(self, local_id, external_id):
        html = "<h1>Order #1869</h1>"
        assert replace_order_id_in_html(html, local_id, external_id) is html
