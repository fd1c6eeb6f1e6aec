from giftbox.i18n import translate


def test_root_redirects_to_best_locale(client):
    assert client.get("/").headers["Location"].endswith("/en/")
    r = client.get("/", headers={"Accept-Language": "ru-RU,ru;q=0.9"})
    assert r.headers["Location"].endswith("/ru/")


def test_unprefixed_page_keeps_query_string(client):
    r = client.get("/products?category=TOYS")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/en/products?category=TOYS")


def test_unknown_locale_is_404(client):
    assert client.get("/xx/products").status_code == 404


def test_api_and_admin_are_not_prefixed(client):
    assert client.get("/api/box-types").status_code == 200
    # admin redirects to login instead of being locale-prefixed
    assert "/login?next=/admin" in client.get("/admin/").headers["Location"]


def test_reserved_prefixes_match_whole_segments(client):
    assert client.get("/apiary").headers["Location"].endswith("/en/apiary")
    assert client.get("/uploadsfoo/a.png").headers["Location"].endswith("/en/uploadsfoo/a.png")
    assert client.get("/api").status_code == 404


def test_locale_cookie_wins_over_header(client):
    r = client.get("/az/")
    assert "locale=az" in r.headers.get("Set-Cookie", "")
    r = client.get("/", headers={"Accept-Language": "ru"})
    assert r.headers["Location"].endswith("/az/")


def test_pages_render_in_locale(client):
    assert "Корзина" in client.get("/ru/").get_data(as_text=True)
    assert "Səbət" in client.get("/az/").get_data(as_text=True)


def test_translate_falls_back_to_english():
    assert translate("cart", "ru") == "Корзина"
    assert translate("sign_in_google", "az") == "Sign in with Google"
    assert translate("no_such_key", "en") == "no_such_key"
