from cpjudge.messages import MessageLogger, format_message


def test_plain_message_layout():
    html = format_message("Head", "body", "", True, 100, "12:00:00")
    assert html == '<b>[12:00:00] [Head] </b><span style="">[body]</span>'


def test_color_in_style():
    html = format_message("H", "b", "red", True, 100, "t")
    assert 'style="color:red"' in html


def test_escaping_and_spaces():
    html = format_message("a b", "<x>  &", "", True, 100, "t")
    assert "[a&nbsp;b]" in html
    assert "[&lt;x&gt;&nbsp;&nbsp;&amp;]" in html


def test_unescaped_keeps_markup():
    html = format_message("h", '<a href="#x">link</a>', "", False, 100, "t")
    assert '[<a href="#x">link</a>]' in html


def test_newlines_become_breaks():
    html = format_message("h", "one\ntwo", "", True, 100, "t")
    assert "[<br>one<br>two]" in html


def test_too_long_message_is_cut():
    html = format_message("h", "x" * 50, "", True, 10, "t")
    assert "x" * 11 not in html
    assert "<br>" + "x" * 10 + "<br>...&nbsp;" not in html
    assert "... The message is too long" in html
    assert html.count("x") == 10


def test_logger_colors_and_entries():
    logger = MessageLogger(length_limit=100, warn_color="orange", error_color="crimson")
    logger.info("I", "i")
    logger.warn("W", "w")
    logger.error("E", "e")
    assert len(logger.entries) == 3
    assert 'style=""' in logger.entries[0]
    assert "color:orange" in logger.entries[1]
    assert "color:crimson" in logger.entries[2]


def test_anchor_clicked_opens_preferences():
    opened = []
    logger = MessageLogger(on_preferences_link=opened.append)
    assert logger.anchor_clicked("#Preferences/Code Edit") is True
    assert logger.anchor_clicked("https://example.com/") is False
    assert opened == ["Code Edit"]