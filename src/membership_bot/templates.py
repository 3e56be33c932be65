"""HTML pages shown at the end of the OAuth redirect."""

from html import escape

_STYLES = """
html {
  font-size: 24px;
  font-family: sans-serif;
  color: white;
  background-color: rgb(0, 0, 0);
}

body {
  margin: auto;
  max-width: 30rem;
}
"""


def layout(children: str) -> str:
    return f"""<html>
  <head>
    <title>Discord community verification</title>
    <style>{_STYLES}</style>
  </head>
  <body>
    {children}
  </body>
</html>"""


def success_page() -> str:
    return layout(
        "<p>Your email was found in the list of approved members!</p>\n"
        "<p>Welcome to the Discord ✨ You're all set, you can close this window.</p>"
    )


def completion_page() -> str:
    """Neutral page for failures whose detail must not reach the user."""
    return layout(
        "<p>Thanks! We've finished checking your Discord account.</p>\n"
        "<p>You can close this window. If your roles don't appear, "
        "try the manual email verification button in Discord.</p>"
    )


def not_found_page(email: str) -> str:
    return layout(f"<p>{escape(email)} was not found in the list of vetted members.</p>")


def missing_configuration_page() -> str:
    return layout(
        "<p>Oh no, for some reason a required value was missing. Please report this to "
        "the Discord admins, this shouldn't have been possible.</p>"
    )


def membership_error_page() -> str:
    return layout(
        "<p>Oh no, something went wrong while checking your membership! Please report "
        "this to the Discord admins.</p>"
    )
