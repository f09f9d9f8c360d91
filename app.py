import time
from datetime import date
from typing import Any, Dict, List, Optional, Union

import requests
import streamlit as st

from config import settings
from schemas import CATEGORIES, DEFAULT_PRICE_RANGE, PRICE_STEP, Event, FilterSpec, Notification, User
from services.auth import SIGNED_OUT, AuthSession
from services.discovery import EVENTS_FAILED
from services.favorites import TOGGLE_FAILED
from services.filters import has_active_filters
from services.formatting import details_notification, format_date, format_price, results_heading
from services.state import (
    AppState,
    EventsFailed,
    EventsLoaded,
    FavoritesLoaded,
    FavoritesReplaced,
    FiltersChanged,
    FiltersCleared,
    FiltersPanelToggled,
    Notified,
    NotificationsDrained,
    SearchChanged,
    is_favorite,
    reduce,
    visible_events,
)

# =========================
# Config
# =========================
API = settings.api_base.rstrip("/")

st.set_page_config(page_title="SP Event Finder", page_icon="🎭", layout="wide")

# Session defaults
if "auth" not in st.session_state:
    st.session_state.auth = SIGNED_OUT
if "page" not in st.session_state:
    st.session_state.page = AppState()

# =========================
# HTTP helpers (single attempt per call, no retry adapter)
# =========================
_session = requests.Session()


def _auth_headers() -> Dict[str, str]:
    token = st.session_state.auth.access_token
    return {"Authorization": f"Bearer {token}"} if token else {}


def _req_json(method: str, path: str, *, timeout: Optional[float] = None, **kwargs) -> Union[Dict[str, Any], List[Any]]:
    url = f"{API}{path}"
    t0 = time.time()
    try:
        r = _session.request(
            method, url, headers=_auth_headers(), timeout=timeout or settings.http_timeout_seconds, **kwargs
        )
        if r.status_code == 401 and st.session_state.auth.user is not None:
            # token expired or revoked: back to the login surface
            _drop_session()
        r.raise_for_status()
        return r.json()
    except Exception as e:
        elapsed = round((time.time() - t0) * 1000)
        return {"ok": False, "error": str(e), "debug": {"url": url, "elapsed_ms": elapsed}}


def _get(path: str, **params) -> Union[Dict[str, Any], List[Any]]:
    return _req_json("GET", path, params=params)


def _post(path: str, payload: Dict[str, Any]) -> Union[Dict[str, Any], List[Any]]:
    return _req_json("POST", path, json=payload)


def _dispatch(action) -> None:
    st.session_state.page = reduce(st.session_state.page, action)


# =========================
# Store round-trips
# =========================


def load_page() -> None:
    res = _get("/events")
    if isinstance(res, dict) and res.get("ok") and "items" in res:
        _dispatch(EventsLoaded(tuple(Event.model_validate(i) for i in res["items"])))
    else:
        note = res.get("notification") if isinstance(res, dict) else None
        _dispatch(EventsFailed(Notification.model_validate(note) if note else EVENTS_FAILED))

    fav = _get("/favorites")
    items = fav.get("items") if isinstance(fav, dict) else None
    _dispatch(FavoritesLoaded(frozenset(items or [])))


def toggle_favorite(event_id: str) -> None:
    auth: AuthSession = st.session_state.auth
    if auth.user is None:
        return
    page: AppState = st.session_state.page
    res = _post(
        "/favorites/toggle",
        {"event_id": event_id, "favorites": sorted(page.favorites)},
    )
    if not isinstance(res, dict) or "notification" not in res:
        _dispatch(Notified(TOGGLE_FAILED))
        return
    if res.get("ok"):
        _dispatch(FavoritesReplaced(frozenset(res.get("favorites") or [])))
    _dispatch(Notified(Notification.model_validate(res["notification"])))


def sign_in(email: str, password: str, *, create: bool = False) -> Optional[str]:
    res = _post("/auth/signup" if create else "/auth/login", {"email": email, "password": password})
    if not isinstance(res, dict) or not res.get("user"):
        return (res.get("error") if isinstance(res, dict) else None) or "Falha ao entrar"
    if not res.get("access_token"):
        return "Confirme seu email para entrar"
    st.session_state.auth = AuthSession(
        user=User.model_validate(res["user"]), access_token=res["access_token"]
    )
    st.session_state.page = AppState()
    return None


def _drop_session() -> None:
    st.session_state.auth = SIGNED_OUT
    st.session_state.page = AppState()
    _reset_filter_widgets()


def sign_out() -> None:
    _post("/auth/logout", {})
    _drop_session()


# =========================
# Filter widgets -> actions
# =========================
_FILTER_KEYS = ("f_search", "f_category", "f_location", "f_price", "f_from", "f_to")


def _reset_filter_widgets() -> None:
    for k in _FILTER_KEYS + ("search_box",):
        st.session_state.pop(k, None)


def _iso(d: Optional[date]) -> str:
    return d.isoformat() if d else ""


def _on_quick_search() -> None:
    _dispatch(SearchChanged(st.session_state.search_box))
    st.session_state.pop("f_search", None)


def _on_filters_changed() -> None:
    ss = st.session_state
    spec = FilterSpec(
        search=ss.get("f_search", ""),
        category=ss.get("f_category"),
        location=ss.get("f_location", ""),
        price_range=tuple(ss.get("f_price", DEFAULT_PRICE_RANGE)),
        date_from=_iso(ss.get("f_from")),
        date_to=_iso(ss.get("f_to")),
    )
    _dispatch(FiltersChanged(spec))
    ss.pop("search_box", None)


def _on_clear() -> None:
    _dispatch(FiltersCleared())
    _reset_filter_widgets()


def _date_or_none(value: str) -> Optional[date]:
    return date.fromisoformat(value) if value else None


# =========================
# UI components
# =========================


def login_surface() -> None:
    st.title("SP Event Finder")
    st.caption("Eventos culturais em São Paulo")
    with st.form("login_form"):
        email = st.text_input("Email")
        password = st.text_input("Senha", type="password")
        c1, c2 = st.columns(2)
        with c1:
            do_login = st.form_submit_button("Entrar", type="primary")
        with c2:
            do_signup = st.form_submit_button("Criar conta")
    if do_login or do_signup:
        err = sign_in(email.strip(), password, create=bool(do_signup))
        if err:
            st.error(err)
        else:
            st.rerun()


def filters_panel(page: AppState) -> None:
    spec = page.filters
    active = has_active_filters(spec)

    c1, c2 = st.columns([3, 1])
    with c1:
        label = "🔎 Filtros Avançados" + ("  ❗" if active else "")
        st.button(label, on_click=_dispatch, args=(FiltersPanelToggled(),))
    with c2:
        if active:
            st.button("✖ Limpar", key="clear_top", on_click=_on_clear)

    if not page.filters_visible:
        return

    with st.container(border=True):
        st.subheader("Filtros de Eventos")
        st.text_input(
            "Buscar eventos", value=spec.search, key="f_search",
            placeholder="Nome do evento, artista...", on_change=_on_filters_changed,
        )
        st.selectbox(
            "Categoria", CATEGORIES, index=CATEGORIES.index(spec.category) if spec.category in CATEGORIES else 0,
            key="f_category", on_change=_on_filters_changed,
        )
        st.text_input(
            "📍 Localização", value=spec.location, key="f_location",
            placeholder="Bairro, região...", on_change=_on_filters_changed,
        )
        low, high = spec.price_range
        st.slider(
            "💲 Faixa de Preço (R$)", min_value=0.0, max_value=DEFAULT_PRICE_RANGE[1],
            value=(float(low), float(high)), step=PRICE_STEP,
            key="f_price", on_change=_on_filters_changed,
        )
        d1, d2 = st.columns(2)
        with d1:
            st.date_input(
                "📅 Data inicial", value=_date_or_none(spec.date_from),
                key="f_from", on_change=_on_filters_changed,
            )
        with d2:
            st.date_input(
                "Data final", value=_date_or_none(spec.date_to),
                key="f_to", on_change=_on_filters_changed,
            )


def event_card(ev: Event, favorite: bool) -> None:
    with st.container(border=True):
        if ev.image_url:
            st.image(ev.image_url, use_container_width=True)
        if ev.is_sponsored:
            st.caption("⭐ Patrocinado")

        st.markdown(f"### {ev.title}")
        if ev.description:
            st.caption(ev.description[:200] + ("..." if len(ev.description) > 200 else ""))

        if ev.date_start:
            st.write(f"📅 {format_date(ev.date_start)}")
        if ev.location:
            st.write(f"📍 {ev.location}")
        st.write(f"💰 {format_price(ev.price_min, ev.price_max)}")
        if ev.category:
            st.markdown(f"`{ev.category}`")

        c1, c2 = st.columns(2)
        with c1:
            st.button(
                "❤️ Favorito" if favorite else "🤍 Favoritar",
                key=f"fav_{ev.id}", on_click=toggle_favorite, args=(ev.id,),
            )
        with c2:
            st.button(
                "Ver Detalhes", key=f"details_{ev.id}",
                on_click=_dispatch, args=(Notified(details_notification(ev)),),
            )


def drain_notifications() -> None:
    for n in st.session_state.page.notifications:
        text = f"**{n.title}**" + (f"\n\n{n.description}" if n.description else "")
        st.toast(text, icon="⚠️" if n.variant == "destructive" else "✅")
    _dispatch(NotificationsDrained())


# =========================
# Main App
# =========================
auth: AuthSession = st.session_state.auth

if auth.needs_login:
    login_surface()
    st.stop()

if auth.can_fetch and st.session_state.page.loading:
    with st.spinner("Carregando..."):
        load_page()
    if st.session_state.auth.needs_login:
        st.rerun()

drain_notifications()
page: AppState = st.session_state.page

head_l, head_r = st.columns([4, 1])
with head_l:
    st.title("SP Event Finder")
    st.caption("Eventos culturais em São Paulo")
with head_r:
    st.caption(f"👤 {auth.user.email or auth.user.id}")
    st.button("Sair", on_click=sign_out)

st.text_input(
    "Buscar eventos...", value=page.search_term, key="search_box",
    label_visibility="collapsed", placeholder="Buscar eventos...", on_change=_on_quick_search,
)

filters_panel(page)

items = visible_events(page)
st.subheader(results_heading(len(items)))

if not items:
    with st.container(border=True):
        st.markdown("#### Nenhum evento encontrado")
        st.caption("Tente ajustar os filtros ou verifique novamente mais tarde")
        st.button("Limpar Filtros", key="clear_empty", on_click=_on_clear)
else:
    cols = st.columns(3, gap="large")
    for i, ev in enumerate(items):
        with cols[i % 3]:
            event_card(ev, is_favorite(page, ev.id))
