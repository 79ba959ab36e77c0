"""Canned replies: keyword responses, FAQ, welcome and callback texts.

All text is Telegram HTML.
"""

from .communication.keywords import ResponsePayload, build_keyword_table
from .communication.outbound import Button

SITE = "https://ecohavest.org"
SUPPORT_EMAIL = "support@ecohavest.org"

# Callback ids used by inline buttons
ACTION_KYC_HELP = "kyc_help"
ACTION_START_INTRO = "start_intro"


KYC_RESPONSE = ResponsePayload(
    text=(
        "<b>KYC Verification Guide</b>\n\n"
        "1️⃣ Upload a clear photo of your ID (passport, driver's license)\n"
        "2️⃣ Provide proof of address (utility bill, bank statement)\n"
        "3️⃣ Allow up to 24 hours for review."
    ),
    controls=(
        (Button("📄 KYC Docs", url=f"{SITE}/dashboard/account/kyc"),),
        (Button("❓ Need Help?", callback_data=ACTION_KYC_HELP),),
    ),
)

SIGNUP_RESPONSE = ResponsePayload(
    text=(
        "<b>How to Sign Up</b>\n\n"
        f'• Go to the <a href="{SITE}/signup">Signup Page</a>\n'
        "• Fill in your details and verify your email\n"
        "• Start trading instantly!"
    ),
)

PROBLEM_RESPONSE = ResponsePayload(
    text=(
        "<b>Experiencing an Issue?</b>\n\n"
        "We're sorry to hear you're facing a problem. "
        "Please describe the issue you're encountering in detail.\n\n"
        "Alternatively, you can contact our support team directly via email for assistance."
    ),
    controls=((Button("📧 Contact Us", url=f"{SITE}/contact"),),),
)

# Registration order matters: the first keyword found in a message wins.
KEYWORD_ENTRIES = (
    ("kyc", KYC_RESPONSE),
    ("signup", SIGNUP_RESPONSE),
    ("problem", PROBLEM_RESPONSE),
    ("issue", PROBLEM_RESPONSE),
    ("issues", PROBLEM_RESPONSE),
    ("trouble", PROBLEM_RESPONSE),
    ("other", PROBLEM_RESPONSE),
)


def default_keyword_table():
    return build_keyword_table(KEYWORD_ENTRIES)


START_TEXT = "HI from Ecohavest"

FETCHING_TEXT = "Fetching latest crypto prices and news, please wait..."

FAQ_TEXT = f"""<b>Frequently Asked Questions:</b>

<b>1. How can I make deals with Ecoharvest?</b>
   - To make a deal, you must first become a registered customer. Once you are signed up, you can make your first deposit. Alternatively, reach out to our customer service at <a href="mailto:{SUPPORT_EMAIL}">{SUPPORT_EMAIL}</a>.

<b>2. How can I apply for KYC Verification?</b>
   - Once verified, you'll access all Ecoharvest services. Verify your identity by uploading clear color copies (photo or scan) of:
     • <b>Proof of identity:</b> Passport, national ID card, or driving license (if it includes your address, additional proof might not be needed).
     • <b>Proof of address:</b> Bank/card statement or utility bill (e.g., water, gas, electric, internet, phone), residency certificate, or tenancy contract.

<b>3. Are there any withdrawal limits?</b>
   - You can request cryptocurrency withdrawals equivalent to at least 50 USD.

<b>4. How long does it take for my deposit to be added?</b>
   - Deposits are processed immediately.

<b>5. How does Ecoharvest thrive?</b>
   - Ecoharvest provides Solar Energy Solutions using automated elements, cryptocurrency trading, AI-based asset management, Blockchain technologies, and protocols for fast order delivery."""

WELCOME_INTRO_TEXT = (
    "Here's a quick intro to get started:\n\n"
    f'• Read the <a href="{SITE}/about">About Us</a>\n'
    "• Drop a hello in #introductions\n"
    "• Use /help for commands\n"
    "• Use /faq for frequently asked questions"
)

WELCOME_CONTROLS = (
    (Button("📜 About Us", url=f"{SITE}/about"),),
    (Button("💬 Introduce Me", callback_data=ACTION_START_INTRO),),
)

INTRO_PROMPT_TEXT = (
    "Great! Please tell us a bit about yourself.<i> For example:</i>\n"
    "\"I'm Alex, I love automation and chess!\""
)

KYC_HELP_ACK = "Providing KYC help..."

KYC_HELP_TEXT = (
    "<b>Need help with KYC?</b>\n\n"
    "If you're having trouble with the KYC process, please:\n"
    "• Ensure your documents are clear and valid.\n"
    f'• Check the <a href="{SITE}/faq">FAQ page</a> for common issues.\n'
    f'• Contact support at <a href="mailto:{SUPPORT_EMAIL}">{SUPPORT_EMAIL}</a> for direct assistance.'
)

# Admin gate replies
UNVERIFIED_USER_TEXT = "Unable to verify user."
NOT_AUTHORIZED_TEXT = "You are not authorized to use this command."
PERMISSION_CHECK_FAILED_TEXT = "An error occurred while checking permissions."

BAN_USAGE_TEXT = "Reply to a message with /ban, or use /ban &lt;user_id&gt;."
SHUTDOWN_TEXT = "Shutting down..."
