"""PLACSP ATOM feed element paths and code tables."""

# Root/entry
FEED_ROOT = "feed"
ENTRY = "entry"

# Entry-level ATOM elements
ENTRY_ID = "id"
TITLE = "title"
SUMMARY = "summary"
LINK = "link"
LINK_HREF = "href"
PUBLISHED = "published"
UPDATED = "updated"

# Contract folder (both spellings seen in the feed)
CONTRACT_FOLDER_KEYS = ("cac-place-ext:ContractFolderStatus", "ContractFolderStatus")
CONTRACT_FOLDER_ID = "cbc:ContractFolderID"
PROCUREMENT_PROJECT = "cac:ProcurementProject"
DESCRIPTION = "cbc:Description"

# Paths relative to the contract folder; first present value wins
CLASSIFICATION_PATH = (
    PROCUREMENT_PROJECT,
    "cac:RequiredCommodityClassification",
    "cbc:ItemClassificationCode",
)

REGION_PATHS = (
    (PROCUREMENT_PROJECT, "cac:RealizedLocation", "cac:Address", "cbc:CountrySubentity"),
    (PROCUREMENT_PROJECT, "cac:RealizedLocation", "cbc:CountrySubentity"),
    (PROCUREMENT_PROJECT, "cac:RealizedLocation", "cac:Address", "cbc:CountrySubentityCode"),
)

BUDGET_PATHS = (
    (PROCUREMENT_PROJECT, "cbc:BudgetAmount"),
    (PROCUREMENT_PROJECT, "cac:BudgetAmount", "cbc:TaxExclusiveAmount"),
    (PROCUREMENT_PROJECT, "cac:BudgetAmount", "cbc:EstimatedOverallContractAmount"),
    (PROCUREMENT_PROJECT, "cac:BudgetAmount", "cbc:TotalAmount"),
)

DEADLINE_PATH = (
    "cac:TenderingProcess",
    "cac:TenderSubmissionDeadlinePeriod",
    "cbc:EndDate",
)

ISSUING_BODY_PATHS = (
    ("cac:LocatedContractingParty", "cac:Party", "cac:PartyName", "cbc:Name"),
    ("cac-place-ext:LocatedContractingParty", "cac:Party", "cac:PartyName", "cbc:Name"),
)

STATUS_PATHS = (
    ("cbc:ContractFolderStatusCode",),
    ("cbc-place-ext:ContractFolderStatusCode",),
)

DEFAULT_ISSUING_BODY = "Not specified"
DEFAULT_STATUS_CODE = "PUB"

# Feed status code -> record status
STATUS_MAP: dict[str, str] = {
    "PUB": "active",
    "EV": "active",
    "ADJ": "awarded",
    "RES": "closed",
    "AN": "closed",
}

# CPV prefix -> work category; longest matching prefix wins
CATEGORY_RULES: tuple[tuple[str, str], ...] = (
    ("45211", "Residential building"),
    ("4521", "Building construction"),
    ("45233", "Roads and highways"),
    ("4522", "Civil engineering"),
    ("4524", "Hydraulic works"),
    ("4511", "Demolition and site preparation"),
    ("4526", "Roofing and special trades"),
    ("4531", "Electrical installation"),
    ("4532", "Plumbing and HVAC"),
    ("4541", "Renovation and finishing"),
    ("4544", "Painting and glazing"),
    ("4550", "Construction equipment hire"),
)
DEFAULT_CATEGORY = "General construction"
