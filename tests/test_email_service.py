from app.utils.email_service import _build_order_email_html


def test_order_email_escapes_user_supplied_text():
    html = _build_order_email_html(
        customer_name='<img src=x onerror="alert(1)">',
        items_summary=[{"name": "Fish & <b>Chips</b>", "qty": 2, "price": 4.5, "total": 9.0}],
        order_id="order-1",
        order_total=9.0,
    )
    assert "<img" not in html
    assert "&lt;img src=x onerror=&quot;alert(1)&quot;&gt;" in html
    assert "Fish &amp; &lt;b&gt;Chips&lt;/b&gt;" in html
    assert "$9.00" in html
