from __future__ import annotations

from dataclasses import dataclass

import pytest

from cafeteria_client.testing.fakes import FakeHttpSession


@dataclass(frozen=True)
class Meal:
    id: str
    date: str  # MM-dd-yyyy, as in the data-date attribute
    title: str = "MENÜ I"
    subtitle: str = "Wiener Schnitzel mit Erdäpfelsalat"
    allergens: str = "A, C, G"
    price: str = "€ 5,10"
    available: bool = True
    ordered: bool = False


@dataclass(frozen=True)
class Position:
    id: str
    cycle: str = "EC1"
    date: str = "10.02.2026 00:00:00"
    title: str = "MENÜ I"
    subtitle: str = "Schnitzel"
    approved: bool = True


class GourmetPages:
    """HTML snippets shaped like the Gourmet (Umbraco) pages."""

    LOGGED_IN_HEADER = """
      <header>
        <a href="/einstellungen/">Einstellungen</a>
        <span class="loginname">Max Mustermann</span>
        <form method="post" action="/start/">
          <button type="submit" id="btnHeaderLogout">Logout</button>
          <input type="hidden" name="ufprt" value="logout-ufprt">
          <input type="hidden" name="__ncforminfo" value="logout-nc">
        </form>
      </header>
    """

    USER_INPUTS = """
      <input type="hidden" id="shopModel" value="SM-1">
      <input type="hidden" id="eater" value="E-42">
      <input type="hidden" id="staffGroup" value="SG-7">
    """

    @staticmethod
    def login(token: str = "login") -> str:
        return f"""
        <html><body>
          <form method="post" action="/start/">
            <input name="Username"><input name="Password" type="password">
            <input type="hidden" name="ufprt" value="{token}-ufprt">
            <input type="hidden" name="__ncforminfo" value="{token}-nc">
          </form>
          <p>Bitte melden Sie sich an.</p>
        </body></html>
        """

    @classmethod
    def start(cls, with_user_inputs: bool = True) -> str:
        return f"""
        <html><body>
          {cls.LOGGED_IN_HEADER}
          {cls.USER_INPUTS if with_user_inputs else ""}
          <h1>Willkommen</h1>
        </body></html>
        """

    @staticmethod
    def _meal(m: Meal) -> str:
        checkbox = ""
        if m.available:
            checked = " checked" if m.ordered else ""
            checkbox = f'<input type="checkbox" class="menu-clicked"{checked}>'
        return f"""
          <div class="meal">
            <div class="open_info menu-article-detail" data-id="{m.id}" data-date="{m.date}"></div>
            <div class="title">{m.title}<span class="badge">neu</span></div>
            <div class="subtitle">{m.subtitle}</div>
            <ul><li class="allergen">{m.allergens}</li></ul>
            <div class="price"><span>{m.price}</span></div>
            {checkbox}
          </div>
        """

    @classmethod
    def menus(cls, meals: list[Meal], *, has_next: bool = False) -> str:
        desktop = "".join(cls._meal(m) for m in meals)
        next_link = '<a class="menues-next" href="/menus/?page=1">weiter</a>' if has_next else ""
        return f"""
        <html><body>
          {cls.LOGGED_IN_HEADER}
          {cls.USER_INPUTS}
          <div class="row hide-sm-down">{desktop}</div>
          <div class="row hide-md-up">{desktop}</div>
          {next_link}
        </body></html>
        """

    @staticmethod
    def _position(p: Position) -> str:
        approved = '<i class="fa fa-check"></i>' if p.approved else ""
        return f"""
          <div class="order-item">
            <div class="order-item-details">
              <div class="title">{p.title}</div>
              <div class="subtitle">{p.subtitle}</div>
              {approved}
            </div>
            <form id="form_{p.id}_cp" method="post" action="/bestellungen/">
              <input type="hidden" name="cp_PositionId" value="{p.id}">
              <input type="hidden" name="cp_EatingCycleId_{p.id}" value="{p.cycle}">
              <input type="hidden" name="cp_Date_{p.id}" value="{p.date}">
              <input type="hidden" name="ufprt" value="cancel-{p.id}-ufprt">
              <input type="hidden" name="__ncforminfo" value="cancel-{p.id}-nc">
              <button type="submit">Stornieren</button>
            </form>
          </div>
        """

    @classmethod
    def orders(cls, positions: list[Position], *, edit_raw: str = "True", token: str = "edit") -> str:
        rows = "".join(cls._position(p) for p in positions)
        return f"""
        <html><body>
          {cls.LOGGED_IN_HEADER}
          {cls.USER_INPUTS}
          <form class="form-toggleEditMode" method="post" action="/bestellungen/">
            <input type="hidden" name="editMode" value="{edit_raw}">
            <input type="hidden" name="ufprt" value="{token}-ufprt">
            <input type="hidden" name="__ncforminfo" value="{token}-nc">
          </form>
          {rows}
        </body></html>
        """


class VentopayPages:
    """HTML snippets shaped like the Ventopay (ASP.NET Web Forms) pages."""

    @staticmethod
    def login(state: str = "vs1") -> str:
        return f"""
        <html><body><form id="form1" method="post" action="Login.aspx">
          <input type="hidden" name="__LASTFOCUS" id="__LASTFOCUS" value="">
          <input type="hidden" name="__EVENTTARGET" id="__EVENTTARGET" value="">
          <input type="hidden" name="__EVENTARGUMENT" id="__EVENTARGUMENT" value="">
          <input type="hidden" name="__VIEWSTATE" id="__VIEWSTATE" value="{state}-viewstate">
          <input type="hidden" name="__VIEWSTATEGENERATOR" id="__VIEWSTATEGENERATOR" value="C2EE9ABB">
          <input type="hidden" name="__EVENTVALIDATION" id="__EVENTVALIDATION" value="{state}-validation">
          <select name="DropDownList1"><option value="x">Firma</option></select>
          <input name="TxtUsername"><input name="TxtPassword" type="password">
          <input type="submit" name="BtnLogin" value="Login">
        </form></body></html>
        """

    @staticmethod
    def home() -> str:
        return """
        <html><body>
          <a id="LinkButtonLogout" href="Ausloggen.aspx">Abmelden</a>
          <h1>Übersicht</h1>
        </body></html>
        """

    @staticmethod
    def transaction(tx_id: str, title: str, stamp: str = "09. Feb 2026 - 11:49 Uhr", href: str = "") -> str:
        link = f'<a href="{href}">Details</a>' if href else ""
        return f"""
          <div class="transact" id="{tx_id}">
            <div class="transact_title">{title}</div>
            <div class="transact_timestamp">{stamp}</div>
            {link}
          </div>
        """

    @classmethod
    def transactions(cls, rows: list[str]) -> str:
        return f"""
        <html><body>
          <a href="Ausloggen.aspx">Abmelden</a>
          <div class="transactions">{"".join(rows)}</div>
        </body></html>
        """

    @staticmethod
    def receipt() -> str:
        return """
        <html><body>
          <a href="Ausloggen.aspx">Abmelden</a>
          <div class="section_title">Rechnung</div>
          <table><tr><td>Nr.</td><td>4711</td></tr></table>
          <div class="section_title">Positionen</div>
          <table>
            <tbody>
              <tr><td>1 x</td><td>Kaffee groß</td><td>€ 1,80</td><td>€ 0,00</td><td>€ 1,80</td></tr>
              <tr class="rechnungsdetail_position_line"><td colspan="5"></td></tr>
              <tr><td>2 x</td><td>• Semmel (Gebäck)</td><td>€ 0,60</td><td>€ 0,10</td><td>€ 1,10</td></tr>
              <tr><td></td><td>Summe</td><td></td><td></td><td>EUR 2,90</td></tr>
            </tbody>
          </table>
        </body></html>
        """


@pytest.fixture()
def gourmet_pages() -> type[GourmetPages]:
    return GourmetPages


@pytest.fixture()
def ventopay_pages() -> type[VentopayPages]:
    return VentopayPages


@pytest.fixture()
def http() -> FakeHttpSession:
    return FakeHttpSession()
