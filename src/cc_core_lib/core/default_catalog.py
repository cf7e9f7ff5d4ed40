"""Default litigation roadmap.

Nine stages grouped into three phases. The case enters LITIGATION when the
complaint is filed with the court (cf-2) and TRIAL when pretrial motions are
filed (trial-1).
"""

from functools import lru_cache
from typing import Any, Dict

from cc_core_lib.core.catalog import Catalog

LITIGATION_TRANSITION_SUBSTAGE_ID = "cf-2"
TRIAL_TRANSITION_SUBSTAGE_ID = "trial-1"

_DOCUMENT_FORMATS = "PDF, JPG, PNG"
_VIDEO_FORMATS = "MP4, MOV, AVI"
_LETTER_FORMATS = "PDF, DOC, DOCX"

LITIGATION_ROADMAP: Dict[str, Any] = {
    "phases": [
        {
            "phase": "pre_litigation",
            "name": "Pre-Litigation",
            "icon": "📋",
            "color": "#3498db",
            "description": "Gathering documentation and preparing your case",
        },
        {
            "phase": "litigation",
            "name": "Litigation",
            "icon": "⚖️",
            "color": "#f39c12",
            "description": "Active lawsuit with court proceedings",
            "transition_substage_id": LITIGATION_TRANSITION_SUBSTAGE_ID,
        },
        {
            "phase": "trial",
            "name": "Trial",
            "icon": "🏛️",
            "color": "#e74c3c",
            "description": "Case proceeding to or in trial",
            "transition_substage_id": TRIAL_TRANSITION_SUBSTAGE_ID,
        },
    ],
    "stages": [
        {
            "id": "pre-litigation",
            "name": "Pre-Litigation",
            "description": "Gather all necessary documentation before filing your case",
            "bonus_coins": 100,
            "phase": "pre_litigation",
            "substages": [
                {"id": "pre-1", "name": "Police Report", "coins": 10, "icon": "🚔",
                 "description": "Upload the official police accident report",
                 "accepted_formats": _DOCUMENT_FORMATS},
                {"id": "pre-2", "name": "Body Cam Footage", "coins": 10, "icon": "📹",
                 "description": "Upload body camera footage if available",
                 "accepted_formats": _VIDEO_FORMATS},
                {"id": "pre-3", "name": "Dash Cam Footage", "coins": 10, "icon": "🎥",
                 "description": "Upload dash camera recordings",
                 "accepted_formats": _VIDEO_FORMATS},
                {"id": "pre-4", "name": "Pictures", "coins": 5, "icon": "📸",
                 "description": "Upload photos of accident scene, vehicle damage, and injuries",
                 "accepted_formats": "JPG, PNG, HEIC"},
                {"id": "pre-5", "name": "Health Insurance Card", "coins": 5, "icon": "💳",
                 "description": "Upload copy of health insurance card (front and back)",
                 "accepted_formats": _DOCUMENT_FORMATS},
                {"id": "pre-6", "name": "Auto Insurance Company", "coins": 5, "icon": "🏢",
                 "description": "Enter your auto insurance provider name",
                 "is_data_entry": True},
                {"id": "pre-7", "name": "Auto Insurance Policy Number", "coins": 5, "icon": "🔢",
                 "description": "Enter your auto insurance policy number",
                 "is_data_entry": True},
                {"id": "pre-8", "name": "Medical Bills", "coins": 15, "icon": "💵",
                 "description": "Upload all medical treatment bills",
                 "accepted_formats": _DOCUMENT_FORMATS},
                {"id": "pre-9", "name": "Medical Records", "coins": 35, "icon": "📋",
                 "description": "Upload complete medical records and reports",
                 "accepted_formats": _DOCUMENT_FORMATS},
                {"id": "pre-10", "name": "Demand Sent", "coins": 15, "icon": "📮",
                 "description": "Upload the demand letter sent to the opposing party or insurance company",
                 "accepted_formats": _LETTER_FORMATS},
                {"id": "pre-11", "name": "Demand Rejected", "coins": 10, "icon": "❌",
                 "description": "Upload the rejection response to your demand letter",
                 "accepted_formats": _LETTER_FORMATS},
            ],
        },
        {
            "id": "complaint-filed",
            "name": "Complaint Filed",
            "description": "Your lawsuit is officially filed with the court",
            "bonus_coins": 32,
            "phase": "litigation",
            "substages": [
                {"id": "cf-1", "name": "Draft Complaint", "coins": 8,
                 "description": "Prepare the legal complaint document"},
                {"id": "cf-2", "name": "File with Court", "coins": 10,
                 "description": "Submit complaint to the court"},
                {"id": "cf-3", "name": "Serve Defendant", "coins": 7,
                 "description": "Deliver complaint to the defendant"},
                {"id": "cf-4", "name": "Answer Filed (within 30 days)", "coins": 7,
                 "description": "Defendant files their answer to the complaint"},
            ],
        },
        {
            "id": "discovery",
            "name": "Discovery Begins",
            "description": "Exchange information with the opposing party",
            "bonus_coins": 50,
            "phase": "litigation",
            "substages": [
                {"id": "disc-1", "name": "Interrogatories", "coins": 10,
                 "description": "Written questions for the other party"},
                {"id": "disc-2", "name": "Request for Production of Documents", "coins": 10,
                 "description": "Request relevant documents from the opposing party"},
                {"id": "disc-3", "name": "Request for Admissions", "coins": 10,
                 "description": "Facts to be admitted or denied by the opposing party"},
                {"id": "disc-4", "name": "Entry Upon Land for Inspection", "coins": 10,
                 "description": "Request to inspect property or land related to the case"},
                {"id": "disc-5", "name": "Experts", "coins": 10,
                 "description": "Identify and disclose expert witnesses"},
            ],
        },
        {
            "id": "depositions",
            "name": "Depositions",
            "description": "Sworn testimony is recorded under oath",
            "bonus_coins": 100,
            "phase": "litigation",
            "substages": [
                {"id": "dep-1", "name": "Deposition Preparation", "coins": 25,
                 "description": "Prepare for your testimony"},
                {"id": "dep-2", "name": "Your Deposition", "coins": 25,
                 "description": "Give sworn testimony"},
                {"id": "dep-3", "name": "Opposing Party Deposition", "coins": 25,
                 "description": "Attend opponent depositions"},
                {"id": "dep-4", "name": "Expert Deposition", "coins": 25,
                 "description": "Expert witness sworn testimony"},
            ],
        },
        {
            "id": "mediation",
            "name": "Mediation",
            "description": "Attempt to settle the case with a neutral mediator",
            "bonus_coins": 50,
            "phase": "litigation",
            "substages": [
                {"id": "med-1", "name": "Mediation Prep", "coins": 15,
                 "description": "Prepare settlement strategy"},
                {"id": "med-2", "name": "Mediation Session", "coins": 25,
                 "description": "Attend mediation meeting"},
                {"id": "med-3", "name": "Settlement Negotiation", "coins": 10,
                 "description": "Negotiate settlement terms"},
            ],
        },
        {
            "id": "trial-prep",
            "name": "Trial Prep",
            "description": "Prepare your case for trial presentation",
            "bonus_coins": 100,
            "phase": "litigation",
            "substages": [
                {"id": "tp-1", "name": "Prepare your Testimony", "coins": 25,
                 "description": "Prepare what you will say on the stand"},
                {"id": "tp-2", "name": "Confirm Exhibits and Evidence with your Attorney", "coins": 20,
                 "description": "Review all exhibits and evidence with your lawyer"},
                {"id": "tp-3", "name": "Arrange to miss work", "coins": 15,
                 "description": "Schedule time off for trial dates"},
                {"id": "tp-4", "name": "Arrange Transportation", "coins": 15,
                 "description": "Plan how to get to the courthouse"},
                {"id": "tp-5", "name": "Discuss Trial Strategy", "coins": 25,
                 "description": "Review courtroom strategy with your attorney"},
            ],
        },
        {
            "id": "trial",
            "name": "Trial",
            "description": "Present your case in court",
            "bonus_coins": 100,
            "phase": "trial",
            "substages": [
                {"id": "trial-1", "name": "PreTrial motions", "coins": 10,
                 "description": "File pretrial motions with the court"},
                {"id": "trial-2", "name": "Jury selection / voir dire", "coins": 10,
                 "description": "Select jury through voir dire process"},
                {"id": "trial-3", "name": "Opening statements", "coins": 15,
                 "description": "Present opening arguments to the jury"},
                {"id": "trial-4", "name": "Plaintiff's witness testimony (direct and cross examination)",
                 "coins": 15, "description": "Plaintiff presents witness testimony"},
                {"id": "trial-5", "name": "Plaintiff's evidence (pictures, documents, records, affidavits)",
                 "coins": 15, "description": "Plaintiff introduces evidence"},
                {"id": "trial-6", "name": "Plaintiff rests", "coins": 5,
                 "description": "Plaintiff concludes their case"},
                {"id": "trial-7", "name": "Motions", "coins": 5,
                 "description": "Motions after plaintiff rests"},
                {"id": "trial-8", "name": "Defense's witness testimony (direct and cross examination)",
                 "coins": 15, "description": "Defense presents witness testimony"},
                {"id": "trial-9", "name": "Defense's evidence (pictures, documents, records, affidavits)",
                 "coins": 15, "description": "Defense introduces evidence"},
                {"id": "trial-10", "name": "Defense rests", "coins": 5,
                 "description": "Defense concludes their case"},
                {"id": "trial-11", "name": "Motions", "coins": 5,
                 "description": "Motions after defense rests"},
                {"id": "trial-12", "name": "Closing arguments", "coins": 15,
                 "description": "Deliver closing statements to the jury"},
                {"id": "trial-13", "name": "Jury instructions (from judge)", "coins": 10,
                 "description": "Judge instructs the jury on the law"},
                {"id": "trial-14", "name": "Jury deliberations", "coins": 10,
                 "description": "Jury discusses the case privately"},
                {"id": "trial-15", "name": "Jury questions", "coins": 5,
                 "description": "Jury asks questions to the judge"},
                {"id": "trial-16", "name": "Verdict", "coins": 20,
                 "description": "Jury delivers their verdict"},
            ],
        },
        {
            "id": "settlement",
            "name": "Settlement",
            "description": "Reach a settlement agreement with the opposing party",
            "bonus_coins": 75,
            "phase": "trial",
            "substages": [
                {"id": "settle-1", "name": "Negotiations", "coins": 10,
                 "description": "Negotiate settlement terms with opposing party"},
                {"id": "settle-2", "name": "Agreement to settle", "coins": 10,
                 "description": "Reach formal agreement to settle the case"},
                {"id": "settle-3", "name": "Settlement release", "coins": 8,
                 "description": "Sign settlement release documents"},
                {"id": "settle-4", "name": "Lien affidavit", "coins": 7,
                 "description": "Complete lien affidavit documentation"},
                {"id": "settle-5", "name": "Settlement statement", "coins": 8,
                 "description": "Review settlement statement breakdown"},
                {"id": "settle-6", "name": "Disbursement to attorney", "coins": 7,
                 "description": "Settlement funds disbursed to attorney"},
                {"id": "settle-7", "name": "Attorney fees/costs/case expenses disbursed", "coins": 7,
                 "description": "Attorney deducts fees, costs, and expenses"},
                {"id": "settle-8", "name": "Medical provider payments", "coins": 7,
                 "description": "Payment to medical providers from settlement"},
                {"id": "settle-9", "name": "Funding payments", "coins": 6,
                 "description": "Process funding and financing payments"},
                {"id": "settle-10", "name": "Client disbursement", "coins": 15,
                 "description": "Final payment disbursed to you"},
            ],
        },
        {
            "id": "case-resolved",
            "name": "Case Resolved",
            "description": "Your case reaches final resolution - congratulations!",
            "bonus_coins": 200,
            "phase": "trial",
            "substages": [
                {"id": "cr-1", "name": "Judgment Entry", "coins": 100,
                 "description": "Court enters final judgment"},
                {"id": "cr-2", "name": "Case Closure", "coins": 100,
                 "description": "Close out the case"},
            ],
        },
    ],
}


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    """Return the shared default roadmap catalog (built once)"""
    return Catalog.from_dict(LITIGATION_ROADMAP)
