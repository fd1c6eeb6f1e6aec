"""Locale-prefixed routing and the UI message catalog."""
from flask import g, request, redirect, abort, current_app

LOCALE_COOKIE = "locale"
# paths served without a locale prefix
UNPREFIXED = ("/admin", "/api", "/auth", "/static", "/uploads")

MESSAGES = {
    "en": {
        "home": "Home",
        "products": "Products",
        "premade_boxes": "Gift boxes",
        "custom_box": "Build a box",
        "mystery_box": "Mystery box",
        "cart": "Cart",
        "contact": "Contact",
        "login": "Sign in",
        "logout": "Sign out",
        "register": "Create account",
        "orders": "My orders",
        "profile": "Profile",
        "admin": "Admin",
        "add_to_cart": "Add to cart",
        "add_to_box": "Add to box",
        "remove": "Remove",
        "update": "Update",
        "checkout": "Checkout",
        "place_order": "Place order",
        "order_box": "Order this box",
        "subtotal": "Subtotal",
        "tax": "Tax",
        "shipping": "Shipping",
        "total": "Total",
        "quantity": "Quantity",
        "search": "Search",
        "all_categories": "All categories",
        "empty_cart": "Your cart is empty.",
        "empty_box": "Your box is empty.",
        "postcard": "Postcard message",
        "box_type": "Box type",
        "full_name": "Full name",
        "email": "Email",
        "phone": "Phone",
        "address": "Address",
        "place_type": "Place type",
        "country": "Country",
        "password": "Password",
        "name": "Name",
        "subject": "Subject",
        "category": "Category",
        "order_number": "Order number",
        "message": "Message",
        "send": "Send",
        "save": "Save",
        "budget": "Budget (AZN)",
        "recipient_gender": "Recipient gender",
        "recipient_age": "Recipient age",
        "interests": "Interests",
        "occasion": "Occasion",
        "comments": "Comments",
        "male": "Male",
        "female": "Female",
        "thank_you": "Thank you!",
        "order_placed": "Your order was placed successfully.",
        "whatsapp_payment": "We will contact you on WhatsApp to arrange payment.",
        "checkout_cancelled": "Checkout was cancelled. Your items are still saved.",
        "current_password": "Current password",
        "new_password": "New password",
        "sign_in_google": "Sign in with Google",
        "not_found": "The page you requested could not be found.",
        "in_stock": "In stock",
        "out_of_stock": "Out of stock",
        "previous": "Previous",
        "next": "Next",
    },
    "az": {
        "home": "Ana səhifə",
        "products": "Məhsullar",
        "premade_boxes": "Hədiyyə qutuları",
        "custom_box": "Qutu yarat",
        "mystery_box": "Sirli qutu",
        "cart": "Səbət",
        "contact": "Əlaqə",
        "login": "Daxil ol",
        "logout": "Çıxış",
        "register": "Qeydiyyat",
        "orders": "Sifarişlərim",
        "profile": "Profil",
        "add_to_cart": "Səbətə əlavə et",
        "add_to_box": "Qutuya əlavə et",
        "remove": "Sil",
        "update": "Yenilə",
        "checkout": "Sifarişi rəsmiləşdir",
        "place_order": "Sifariş ver",
        "order_box": "Bu qutunu sifariş et",
        "subtotal": "Ara cəm",
        "tax": "Vergi",
        "shipping": "Çatdırılma",
        "total": "Cəmi",
        "quantity": "Say",
        "search": "Axtar",
        "empty_cart": "Səbətiniz boşdur.",
        "empty_box": "Qutunuz boşdur.",
        "postcard": "Açıqça mətni",
        "full_name": "Ad və soyad",
        "phone": "Telefon",
        "address": "Ünvan",
        "country": "Ölkə",
        "password": "Şifrə",
        "name": "Ad",
        "message": "Mesaj",
        "send": "Göndər",
        "save": "Yadda saxla",
        "budget": "Büdcə (AZN)",
        "thank_you": "Təşəkkür edirik!",
        "order_placed": "Sifarişiniz uğurla qəbul edildi.",
        "whatsapp_payment": "Ödəniş üçün sizinlə WhatsApp vasitəsilə əlaqə saxlayacağıq.",
        "not_found": "Axtardığınız səhifə tapılmadı.",
    },
    "ru": {
        "home": "Главная",
        "products": "Товары",
        "premade_boxes": "Подарочные боксы",
        "custom_box": "Собрать бокс",
        "mystery_box": "Бокс-сюрприз",
        "cart": "Корзина",
        "contact": "Контакты",
        "login": "Войти",
        "logout": "Выйти",
        "register": "Регистрация",
        "orders": "Мои заказы",
        "profile": "Профиль",
        "add_to_cart": "В корзину",
        "add_to_box": "В бокс",
        "remove": "Удалить",
        "update": "Обновить",
        "checkout": "Оформить заказ",
        "place_order": "Заказать",
        "order_box": "Заказать этот бокс",
        "subtotal": "Промежуточный итог",
        "tax": "Налог",
        "shipping": "Доставка",
        "total": "Итого",
        "quantity": "Количество",
        "search": "Поиск",
        "empty_cart": "Ваша корзина пуста.",
        "empty_box": "Ваш бокс пуст.",
        "postcard": "Текст открытки",
        "full_name": "Полное имя",
        "phone": "Телефон",
        "address": "Адрес",
        "country": "Страна",
        "password": "Пароль",
        "name": "Имя",
        "message": "Сообщение",
        "send": "Отправить",
        "save": "Сохранить",
        "budget": "Бюджет (AZN)",
        "thank_you": "Спасибо!",
        "order_placed": "Ваш заказ успешно оформлен.",
        "whatsapp_payment": "Мы свяжемся с вами в WhatsApp для оплаты.",
        "not_found": "Запрошенная страница не найдена.",
    },
}


def translate(key, locale=None):
    locale = locale or getattr(g, "locale", None) or current_app.config["DEFAULT_LOCALE"]
    return MESSAGES.get(locale, {}).get(key) or MESSAGES["en"].get(key, key)


def best_locale():
    locales = current_app.config["LOCALES"]
    cookie = request.cookies.get(LOCALE_COOKIE)
    if cookie in locales:
        return cookie
    return request.accept_languages.best_match(locales) or current_app.config["DEFAULT_LOCALE"]


def localize(bp):
    """Wire the ``<locale>`` URL prefix of ``bp`` into ``g.locale``."""

    @bp.url_value_preprocessor
    def pull_locale(endpoint, values):
        g.locale = values.pop("locale", None)
        if g.locale not in current_app.config["LOCALES"]:
            abort(404)

    @bp.after_request
    def remember_locale(response):
        locale = getattr(g, "locale", None)
        if locale in current_app.config["LOCALES"] and request.cookies.get(LOCALE_COOKIE) != locale:
            response.set_cookie(LOCALE_COOKIE, locale, max_age=365 * 24 * 3600, samesite="Lax")
        return response

    return bp


def init_i18n(app):
    @app.url_defaults
    def add_locale(endpoint, values):
        if "locale" not in values and app.url_map.is_endpoint_expecting(endpoint, "locale"):
            values["locale"] = getattr(g, "locale", None) or best_locale()

    @app.before_request
    def redirect_unprefixed():
        path = request.path
        if path == "/":
            return redirect(f"/{best_locale()}/")
        if any(path == p or path.startswith(p + "/") for p in UNPREFIXED):
            return None
        first = path.lstrip("/").split("/", 1)[0]
        if first in current_app.config["LOCALES"]:
            return None
        # an unknown two-letter segment is a locale we don't serve
        if len(first) == 2 and first.isalpha():
            abort(404)
        target = f"/{best_locale()}{path}"
        if request.query_string:
            target += "?" + request.query_string.decode()
        return redirect(target)

    @app.context_processor
    def inject_i18n():
        return {"_": translate, "locale": getattr(g, "locale", None) or best_locale(),
                "LOCALES": app.config["LOCALES"]}
