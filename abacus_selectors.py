"""Stable Abacus (Vaadin) component identifiers.

Abacus renders every significant component with a ``movie-id`` attribute
that does not depend on the display language. Everything the automation
knows about the remote page structure lives here.
"""


class Selectors:
    # Portal shell
    MENU_TIME_TRACKING = 'vaadin-button[movie-id="menu-item_rapportierung"]'
    LINK_SERVICES = 'a[href^="proj_services"]'
    LINK_WEEKLY_REPORT = 'a[href^="proj_weeklyreport"]'
    PORTAL_CONTENT = ".va-portal-page-content"

    # Interstitial inserted by the load balancer in front of the portal
    CAPTCHA_URL_MARKER = "fortiadc_captcha"

    # Services grid and its filters
    COMBO_DATE_RANGE = "cmbDateRange"
    DATE_FILTER = "vaadin-date-picker#dateField"
    GRID = 'vaadin-grid[movie-id="ServicesList"]'
    GRID_EMPTY_STATE = ".va-empty-state"
    ROW_MENU_BUTTON = "vaadin-button.dl-menubutton"
    ROW_CONTEXT_DELETE = 'vaadin-context-menu-item[movie-id="datalist_context_delete"]'

    # Date range combobox positions (aria-posinset), identical in every language
    VIEW_WEEK = 2
    VIEW_MONTH = 3

    # Entry form (side panel and dialog share these)
    FORM_DATE = 'vaadin-date-picker[movie-id="ProjDat"]'
    COMBO_PROJECT = "ProjNr2"
    COMBO_SERVICE_TYPE = "LeArtNr"
    FIELD_HOURS = 'vaadin-text-field[movie-id="Menge"] input'
    FIELD_TEXT = 'vaadin-text-field[movie-id="Text"] input'
    BUTTON_NEW_ENTRY = 'vaadin-button[movie-id="mainAction"]'
    BUTTON_SAVE = 'vaadin-button[movie-id="btnSave"]'
    BUTTON_PRIMARY = 'vaadin-button[movie-id="btnPrimary"]'

    # Side panel
    SIDE_PANEL = 'va-side-panel[movie-id="id_editRecordSidePanel"]'
    SIDE_PANEL_CLOSE = 'vaadin-button[movie-id="sidepanel_btnClose"]'
    SIDE_PANEL_ACTIONS = 'vaadin-button[movie-id="sidepanel_btnPopupActions"]'
    SIDE_PANEL_DELETE = 'vaadin-context-menu-item[movie-id="deleteActionBtn"]'

    # Weekly report panels
    PANEL_OVERTIME = 'vaadin-vertical-layout[movie-id="id_pnl_overTime"]'
    PANEL_HOLIDAY = 'vaadin-vertical-layout[movie-id="id_pnl_holiday"]'

    @staticmethod
    def combo(movie_id: str) -> str:
        return f'vaadin-combo-box[movie-id="{movie_id}"]'

    @staticmethod
    def combo_item(position: int) -> str:
        return f'vaadin-combo-box-item[aria-posinset="{position}"]'
