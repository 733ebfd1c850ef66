"""
Centralized storage for all user-facing strings in the Presentation Layer.
Prevents "magic strings" in code and simplifies localization.
"""

class UIStrings:
    # Global error screen, keyed by AppError.code
    ERR_TITLE = "Er is iets misgegaan"
    ERR_SESSION_CHECK_FAILED = "We konden uw sessie niet controleren. Controleer uw internetverbinding."
    ERR_SESSION_EXPIRED = "Uw sessie is verlopen. Log opnieuw in."
    ERR_PROFILE_NOT_FOUND = "Er is geen profiel gevonden voor uw account. Neem contact op met de beheerder."
    ERR_PROFILE_INACTIVE = "Uw account is gedeactiveerd. Neem contact op met de beheerder."
    ERR_PROFILE_FETCH_FAILED = "Uw profiel kon niet worden geladen."
    ERR_PERMISSIONS_FETCH_FAILED = "Uw rechten konden niet worden geladen."
    ERR_SECTION_LOAD_FAILED = "Gegevens konden niet worden geladen."
    ERR_TIMEOUT = "De server reageert niet. Probeer het later opnieuw."
    ERR_GENERIC = "Er is een onverwachte fout opgetreden: {}"

    # Loading
    LOADING_APP = "Applicatie laden..."
    LOADING_SECTION = "{} laden..."

    # Section gate
    SECTION_ERROR = "Kon {} niet laden"

    # Login
    LOGIN_REQUIRED = "U bent niet ingelogd."

    # Button Labels
    BTN_RETRY = "Opnieuw proberen"
    BTN_RELOAD = "Herladen"

    # Diagnostics overlay (development only, not translated)
    DEVTOOLS_TITLE = "Loading state"
    DEVTOOLS_HISTORY = "History"

    # Section titles
    SECTION_TITLES = {
        "customers": "Klanten",
        "projects": "Projecten",
        "planning": "Planning",
        "timeRegistration": "Tijdregistratie",
        "receipts": "Bonnetjes",
        "quotes": "Offertes",
        "personnel": "Personeel",
        "users": "Gebruikers",
        "settings": "Instellingen",
        "email": "E-mail",
        "chat": "Chat",
    }
