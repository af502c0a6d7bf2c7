"""NYC agency names, borough codes and public lookup URLs."""

AGENCY_NAMES: dict[str, str] = {
    "DOB": "Dept. of Buildings",
    "ECB": "Environmental Control Board",
    "HPD": "Housing Preservation",
}

# First digit of a BIN / BBL
BOROUGHS: dict[str, str] = {
    "1": "Manhattan",
    "2": "Bronx",
    "3": "Brooklyn",
    "4": "Queens",
    "5": "Staten Island",
}

ECB_TICKET_FINDER_URL = "http://a820-ecbticketfinder.nyc.gov/searchHome.action"


def agency_display_name(agency: str) -> str:
    return AGENCY_NAMES.get(agency, agency)


def borough_code_from_bin(bin_number: str | None) -> str:
    """Borough code encoded in the leading digit of a BIN, or "" if not valid."""
    if not bin_number:
        return ""
    code = bin_number.strip()[:1]
    return code if code in BOROUGHS else ""


def borough_name(borough: str | None) -> str:
    """Resolve a borough code ("3") or name ("BROOKLYN") to its display name."""
    if not borough:
        return ""
    value = borough.strip()
    if value in BOROUGHS:
        return BOROUGHS[value]
    for name in BOROUGHS.values():
        if value.lower() == name.lower():
            return name
    return value.title()


def agency_lookup_url(agency: str, bbl: str | None = None) -> str:
    """Public lookup page for violations issued by *agency*.

    *bbl* is the 10-digit borough/block/lot key; when given, the DOB link goes
    straight to the property profile.
    """
    if agency == "DOB":
        if bbl and len(bbl) >= 10:
            return (
                "https://a810-bisweb.nyc.gov/bisweb/PropertyProfileOverviewServlet"
                f"?boro={bbl[0]}&block={bbl[1:6]}&lot={bbl[6:10]}"
            )
        return "https://a810-bisweb.nyc.gov/bisweb/bispi00.jsp"
    if agency == "ECB":
        return ECB_TICKET_FINDER_URL
    if agency == "HPD":
        if bbl:
            return "https://hpdonline.nyc.gov/HPDonline/Provide_address.aspx"
        return "https://hpdonline.nyc.gov/HPDonline/"
    return ECB_TICKET_FINDER_URL


def build_bbl(borough: str | None, block: str | None, lot: str | None) -> str | None:
    """Compose a 10-digit BBL from its parts, or None if any part is missing."""
    code = (borough or "").strip()
    if code not in BOROUGHS:
        # Accept borough names as well as codes
        by_name = {name.lower(): c for c, name in BOROUGHS.items()}
        code = by_name.get(code.lower(), "")
    block = (block or "").strip()
    lot = (lot or "").strip()
    if not code or not block.isdigit() or not lot.isdigit():
        return None
    return f"{code}{int(block):05d}{int(lot):04d}"
