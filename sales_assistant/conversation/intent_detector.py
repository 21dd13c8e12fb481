"""
Keyword and regex classifiers used by the interception cascade.

Every function here is pure: it looks at the message text (and sometimes
the vehicles already shown) and answers a yes/no or enum question. The
cascade decides what to do with the answer.

Classifier groups:
1. Conversational acts: question, affirmative, negative, greeting, name
2. Post-recommendation: financing, trade-in, schedule, details, interest, others
3. Search intent: availability, price direction
"""

import re
from enum import Enum
from typing import Any, Optional, Sequence

from sales_assistant.schemas.profile_schema import ShownVehicle
from sales_assistant.utils import parse_money


class PostRecommendationIntent(str, Enum):
    """How a customer reacted to the vehicles we showed."""
    WANT_OTHERS = "want_others"
    WANT_DETAILS = "want_details"
    WANT_SCHEDULE = "want_schedule"
    WANT_FINANCING = "want_financing"
    WANT_TRADEIN = "want_tradein"
    WANT_INTEREST = "want_interest"
    ACKNOWLEDGMENT = "acknowledgment"
    NONE = "none"


class PriceIntent(str, Enum):
    CHEAPER = "cheaper"
    MORE_EXPENSIVE = "more_expensive"


# ---- Conversational acts ---- #

QUESTION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\?\s*$"),
    re.compile(r"^(?:what|which|how|when|where|why|who|is|are|does|do|can|could|would)\b"),
    re.compile(r"\bdifference between\b"),
    re.compile(r"\b(?:can|could) you (?:explain|tell me)\b"),
    re.compile(r"\b(?:i'd|i would) like to know\b"),
    re.compile(r"\bi (?:want|wanted) to know\b"),
    re.compile(r"\bdo you (?:have|guys have|carry|sell)\b"),
    re.compile(r"\bis there any\b"),
]

SHORT_AFFIRMATIVES: frozenset[str] = frozenset({
    "yes", "y", "yeah", "yep", "yup", "sure", "ok", "okay", "k", "alright",
    "please", "of course", "go ahead", "show me", "let's go", "absolutely",
    "definitely", "sounds good", "perfect",
})

AFFIRMATIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\byes\b"),
    re.compile(r"\byeah\b"),
    re.compile(r"\bsure\b"),
    re.compile(r"\bok(?:ay)?\b"),
    re.compile(r"\bplease\b"),
    re.compile(r"\bof course\b"),
    re.compile(r"\bgo ahead\b"),
    re.compile(r"\bshow (?:me|them)\b"),
    re.compile(r"\bi(?:'d| would)? (?:like|want) (?:to see )?(?:that|those|them|it)\b"),
    re.compile(r"\bsounds good\b"),
    re.compile(r"\binterested\b"),
]

NEGATIVE_OVERRIDE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bno\b"),
    re.compile(r"\bnot\b"),
    re.compile(r"\b(?:don't|dont|do not)\b"),
    re.compile(r"\bnever\b"),
    re.compile(r"\bforget it\b"),
    re.compile(r"\bnot now\b"),
]

NEGATIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"^(?:no|n|nope|nah|never|no thanks|no thank you)$"),
    re.compile(r"\b(?:don't|dont|do not) (?:want|need)\b"),
    re.compile(r"\bno,? thank(?:s| you)\b"),
    re.compile(r"\bforget (?:it|about it)\b"),
    re.compile(r"\bnot (?:interested|now|really)\b"),
    re.compile(r"\bmaybe later\b"),
    re.compile(r"\blater\b"),
    re.compile(r"^(?:nothing|never mind|nevermind)$"),
]

GREETING_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"^(?:hi|hello|hey|hiya|howdy|yo)\b"),
    re.compile(r"^good (?:morning|afternoon|evening)\b"),
    re.compile(r"^greetings\b"),
]

NAME_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bmy name(?:'s| is)\s+([A-Za-z][A-Za-z'-]+(?:\s+[A-Za-z][A-Za-z'-]+)?)", re.IGNORECASE),
    re.compile(r"\b(?:i'm|i am|im)\s+([A-Za-z][A-Za-z'-]+)", re.IGNORECASE),
    re.compile(r"\b(?:this is|call me|it's)\s+([A-Za-z][A-Za-z'-]+)", re.IGNORECASE),
]

# Words that follow "I'm" without being a name
NAME_STOP_WORDS: frozenset[str] = frozenset({
    "looking", "interested", "searching", "trying", "thinking", "here", "fine",
    "good", "ok", "okay", "great", "well", "just", "not", "a", "an", "the",
    "after", "in", "on", "from", "buying", "shopping", "wondering", "new",
    "hoping", "planning", "going", "ready", "sure", "curious", "back", "and", "i",
})

# ---- Post-recommendation reactions ---- #

WANT_FINANCING_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"financ"),
    re.compile(r"\binstal(?:l)?ments?\b"),
    re.compile(r"\bmonthly (?:payments?|instal)"),
    re.compile(r"\bdown ?payment\b"),
    re.compile(r"\bpay(?:ing)? (?:in )?cash\b"),
    re.compile(r"\bcash (?:payment|buyer)\b"),
    re.compile(r"\bpayment (?:plan|options?|methods?)\b"),
    re.compile(r"\bsimulat"),
    re.compile(r"\bloan\b"),
    re.compile(r"\d+\s*(?:k|thousand)?\s*(?:as a |as )?down\b"),
    re.compile(r"\bput (?:down )?\$?\d+"),
]

WANT_TRADEIN_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\btrade[-\s]?in\b"),
    re.compile(r"\btrade (?:it|mine|my)\b"),
    re.compile(r"\bmy (?:current |old )?(?:car|vehicle|ride)\b"),
    re.compile(r"\bi (?:have|own|got) an? (?:car|vehicle)\b"),
    re.compile(r"\b(?:take|accept)s? (?:a )?trade"),
    re.compile(r"\bpart[-\s]exchange\b"),
    re.compile(r"\byes,? i (?:have|do) (?:one|a car)\b"),
]

WANT_SCHEDULE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b(?:sales ?(?:person|man|rep)|seller|consultant|agent)\b"),
    re.compile(r"\b(?:human|real person)\b"),
    re.compile(r"\bschedule\b"),
    re.compile(r"\bbook (?:a )?(?:visit|test ?drive|appointment)\b"),
    re.compile(r"\btest ?drive\b"),
    re.compile(r"\bvisit\b"),
    re.compile(r"\bsee (?:it|the car|them) in person\b"),
    re.compile(r"\bcome (?:by|to the (?:store|lot|dealership))\b"),
    re.compile(r"\b(?:want|ready) to (?:buy|close|take) (?:it|the deal)\b"),
    re.compile(r"\bi'?ll take it\b"),
    re.compile(r"\bwhere (?:are you|is the (?:store|dealership))\b"),
    re.compile(r"\b(?:address|phone number|call me)\b"),
]

WANT_DETAILS_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bmore (?:details?|info(?:rmation)?)\b"),
    re.compile(r"\btell me more\b"),
    re.compile(r"\bmileage\b"),
    re.compile(r"\bodometer\b"),
    re.compile(r"\bhow many (?:km|miles)\b"),
    re.compile(r"\b(?:history|previous owners?|accident)\b"),
    re.compile(r"\b(?:documents?|paperwork|title|registration)\b"),
    re.compile(r"\b(?:features|optionals|extras|equipment)\b"),
    re.compile(r"\b(?:photos?|pictures?|video)\b"),
]

WANT_INTEREST_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bi (?:really )?(?:like|love)d? (?:it|this|that|the)\b"),
    re.compile(r"\bi want (?:this|that|it|the (?:first|second|third|1st|2nd|3rd))\b"),
    re.compile(r"\b(?:this|that) one\b"),
    re.compile(r"\binterested in (?:it|this|that|the)\b"),
    re.compile(r"\blooks? (?:great|good|perfect)\b"),
    re.compile(r"\b(?:perfect|excellent|awesome)\b"),
]

WANT_OTHERS_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b(?:other|more|different) (?:options?|cars?|vehicles?|alternatives?|choices?)\b"),
    re.compile(r"\b(?:anything|something) else\b"),
    re.compile(r"\bshow me (?:others|more|another)\b"),
    re.compile(r"\bwhat else\b"),
    re.compile(r"^(?:others?|another|more)$"),
    re.compile(r"\balternatives?\b"),
    re.compile(r"\btoo (?:expensive|pricey|much)\b"),
    re.compile(r"\b(?:over|above|out of) my budget\b"),
    re.compile(r"\b(?:cheaper|less expensive|more affordable)\b"),
    re.compile(r"\bmore expensive\b"),
    re.compile(r"\b(?:don't|dont|do not) (?:like|love)\b"),
    re.compile(r"\bnot (?:what i|really what)\b"),
    re.compile(r"\bnot (?:interested|for me)\b"),
    re.compile(r"\b(?:similar|alike|comparable)\b"),
    re.compile(r"\bsame (?:style|type|size|range|price|category)\b"),
    re.compile(r"\bsomething like\b"),
    re.compile(r"\bcompetitors?\b"),
    re.compile(r"\b(?:under|up to|below)\s*\$?\d"),
]

ACKNOWLEDGMENT_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"^(?:ok|okay|got it|understood|cool|nice|great|right|thanks|thank you|thx|alright)$"),
]

ELIGIBILITY_APP_RE = re.compile(r"\b(?:uber|lyft|ride[-\s]?hail\w*|99)\b")
ELIGIBILITY_WORDS_RE = re.compile(
    r"\b(?:eligible|qualif(?:y|ies)|allowed|accepted|approved|comfort|black|premium|category|x)\b"
    r"|\b(?:works?|good|ok|okay|drive) (?:for|with|on)\b"
)
RIDE_HAIL_TIER_RE = re.compile(r"\b(black|premium|comfort|x|pop)\b")
RIDE_HAIL_TIERS: dict[str, str] = {
    "black": "premium", "premium": "premium", "comfort": "comfort", "x": "standard", "pop": "standard",
}

POSITIVE_EXPRESSION_RE = re.compile(r"\b(?:like|liked|love|loved|want|interested|this|that|good|nice|perfect)\b")
NEGATION_RE = re.compile(r"\b(?:not|don't|dont|no)\b")

POST_RECOMMENDATION_HINTS: dict[str, re.Pattern[str]] = {
    "financing": re.compile(r"financ|instal|down ?payment|monthly"),
    "tradein": re.compile(r"trade|my car|i have a|i own a"),
    "schedule": re.compile(r"schedule|visit|sales ?person|seller|test ?drive|in person"),
    "interest": re.compile(r"\bi (?:like|liked|love)\b|interested|i want (?:this|that|it)|this one"),
    "details": re.compile(r"more (?:info|details?)|mileage|odometer|\bkm\b|features|documents?"),
}

# ---- Search intent ---- #

CHEAPER_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bcheaper\b"),
    re.compile(r"\bless expensive\b"),
    re.compile(r"\bmore affordable\b"),
    re.compile(r"\blower price\b"),
    re.compile(r"\btoo (?:expensive|pricey|much)\b"),
    re.compile(r"\b(?:over|above|out of) my budget\b"),
]

MORE_EXPENSIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bmore expensive\b"),
    re.compile(r"\bpricier\b"),
    re.compile(r"\bhigher[-\s]end\b"),
    re.compile(r"\bmore (?:premium|upscale|luxurious)\b"),
    re.compile(r"\b(?:fancier|nicer)\b"),
]

AVAILABILITY_WORD_RE = re.compile(
    r"\b(?:have|got|available|in stock|carry|sell|any)\b"
)

CATEGORY_WORDS: dict[str, str] = {
    "suv": "suv", "suvs": "suv", "crossover": "suv", "crossovers": "suv",
    "sedan": "sedan", "sedans": "sedan", "saloon": "sedan",
    "hatch": "hatch", "hatches": "hatch", "hatchback": "hatch", "hatchbacks": "hatch",
    "pickup": "pickup", "pickups": "pickup", "truck": "pickup", "trucks": "pickup",
    "minivan": "minivan", "minivans": "minivan", "van": "minivan", "vans": "minivan",
}

_CATEGORY_RE = re.compile(r"\b(" + "|".join(sorted(CATEGORY_WORDS, key=len, reverse=True)) + r")\b")

# ---- Financing replies ---- #

NO_DOWN_PAYMENT_RE = re.compile(
    r"\b(?:no|zero|without(?: a| any)?|nothing(?: as a)?|0)\s*(?:down|down ?payment|deposit|entry)\b"
)
CASH_PAYMENT_RE = re.compile(r"\b(?:pay(?:ing)? (?:in |all )?cash|cash (?:buyer|payment)|in full|upfront)\b")
ONLY_TRADE_IN_RE = re.compile(r"\b(?:only|just) (?:the |my )?(?:trade[-\s]?in|car|old car)\b")

ORDINALS: dict[str, int] = {
    "first": 0, "1st": 0, "1": 0, "one": 0,
    "second": 1, "2nd": 1, "2": 1, "two": 1,
    "third": 2, "3rd": 2, "3": 2, "three": 2,
}

_ORDINAL_RE = re.compile(
    r"\b(?:the |number |#|option |no\.? ?)?(first|second|third|1st|2nd|3rd)\b"
    r"|(?:number|option|#|no\.?)\s*([123])\b"
    r"|^([123])$"
)


def _normalize(message: str) -> str:
    return re.sub(r"[.!,]+$", "", message.lower().strip()).strip()


def _matches(patterns: Sequence[re.Pattern[str]], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def is_question(message: str) -> bool:
    """True when the customer is asking rather than answering."""
    return _matches(QUESTION_PATTERNS, message.lower().strip())


def is_affirmative(message: str) -> bool:
    """True for an acceptance of our last suggestion."""
    text = _normalize(message)
    if text in SHORT_AFFIRMATIVES:
        return True
    if _matches(NEGATIVE_OVERRIDE_PATTERNS, text):
        return False
    return _matches(AFFIRMATIVE_PATTERNS, text)


def is_negative(message: str) -> bool:
    """True for a refusal of our last suggestion."""
    return _matches(NEGATIVE_PATTERNS, _normalize(message))


def is_greeting(message: str) -> bool:
    return _matches(GREETING_PATTERNS, message.lower().strip())


def extract_customer_name(message: str) -> Optional[str]:
    """Read the customer's first name from an introduction.

    A reply made of a single capitalised word is taken as the name.

    Examples:
        >>> extract_customer_name("Hi, I'm Ana")
        'Ana'
        >>> extract_customer_name("I'm looking for an SUV") is None
        True
        >>> extract_customer_name("Carlos")
        'Carlos'
    """
    text = message.strip()
    for pattern in NAME_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        words = match.group(1).split()
        if words[0].lower() in NAME_STOP_WORDS:
            continue
        kept = [w for w in words if w.lower() not in NAME_STOP_WORDS][:2]
        return " ".join(w.capitalize() for w in kept)

    single = re.fullmatch(r"([A-Z][a-z'-]{1,30})[.!]?", text)
    if single and single.group(1).lower() not in NAME_STOP_WORDS and not is_greeting(text):
        if _normalize(text) not in SHORT_AFFIRMATIVES:
            return single.group(1)
    return None


def mentions_shown_model(message: str, shown: Sequence[ShownVehicle]) -> bool:
    """True when the message names a model or brand we already showed."""
    text = message.lower()
    for vehicle in shown:
        model = vehicle.model.lower()
        if len(model) >= 3 and model in text:
            return True
        if vehicle.brand and re.search(r"\b" + re.escape(vehicle.brand.lower()) + r"\b", text):
            return True
    return False


def _is_eligibility_question(text: str) -> bool:
    return bool(ELIGIBILITY_APP_RE.search(text) and ELIGIBILITY_WORDS_RE.search(text))


def is_ride_hail_question(message: str) -> bool:
    """True for "does the Corolla work for Uber Black?" style questions.

    Statements such as "I drive for Uber X" name the app and a category but
    are preferences, not questions, and are left to extraction.
    """
    text = message.lower().strip()
    return _is_eligibility_question(text) and is_question(text)


def requested_ride_hail_tier(message: str) -> Optional[str]:
    """Ride-hail category named in the message: standard, comfort or premium."""
    match = RIDE_HAIL_TIER_RE.search(message.lower())
    return RIDE_HAIL_TIERS[match.group(1)] if match else None


def detect_post_recommendation_intent(
    message: str, shown: Optional[Sequence[ShownVehicle]] = None
) -> PostRecommendationIntent:
    """Classify the reply to a recommendation.

    Financing and trade-in win over scheduling. Interest in a named shown
    vehicle wins over "show me others", and a plain mention of a shown
    model counts as interest when nothing else matched. Ride-hail
    eligibility questions about a shown model are left to the question
    path.
    """
    text = message.lower().strip()
    shown = shown or []

    if _is_eligibility_question(text):
        return PostRecommendationIntent.NONE

    if _matches(WANT_FINANCING_PATTERNS, text):
        return PostRecommendationIntent.WANT_FINANCING
    if _matches(WANT_TRADEIN_PATTERNS, text):
        return PostRecommendationIntent.WANT_TRADEIN
    if _matches(WANT_SCHEDULE_PATTERNS, text):
        return PostRecommendationIntent.WANT_SCHEDULE
    if _matches(WANT_DETAILS_PATTERNS, text):
        return PostRecommendationIntent.WANT_DETAILS

    named = mentions_shown_model(text, shown)
    if named and POSITIVE_EXPRESSION_RE.search(text) and not NEGATION_RE.search(text):
        return PostRecommendationIntent.WANT_INTEREST

    if _matches(WANT_OTHERS_PATTERNS, text):
        return PostRecommendationIntent.WANT_OTHERS
    if _matches(WANT_INTEREST_PATTERNS, text):
        return PostRecommendationIntent.WANT_INTEREST
    if named:
        return PostRecommendationIntent.WANT_INTEREST
    if _matches(ACKNOWLEDGMENT_PATTERNS, _normalize(text)):
        return PostRecommendationIntent.ACKNOWLEDGMENT

    return PostRecommendationIntent.NONE


def is_post_recommendation_response(message: str, extracted: dict[str, Any]) -> bool:
    """True when the message is about the vehicles already on the table."""
    if extracted.get("wants_financing") is True or extracted.get("has_trade_in") is True:
        return True
    text = message.lower()
    return any(pattern.search(text) for pattern in POST_RECOMMENDATION_HINTS.values())


def detect_price_intent(message: str) -> Optional[PriceIntent]:
    """Direction of an explicit price shift. Cheaper wins when both appear."""
    text = message.lower()
    if _matches(CHEAPER_PATTERNS, text):
        return PriceIntent.CHEAPER
    if _matches(MORE_EXPENSIVE_PATTERNS, text):
        return PriceIntent.MORE_EXPENSIVE
    return None


def detect_category(message: str) -> Optional[str]:
    """Normalised body type named in the message."""
    match = _CATEGORY_RE.search(message.lower())
    return CATEGORY_WORDS[match.group(1)] if match else None


def detect_availability_question(message: str) -> Optional[str]:
    """Body type of an availability question ("do you have SUVs?"), if any.

    Examples:
        >>> detect_availability_question("Do you have any SUVs?")
        'suv'
        >>> detect_availability_question("I like SUVs") is None
        True
    """
    text = message.lower()
    if not AVAILABILITY_WORD_RE.search(text):
        return None
    return detect_category(text)


def is_financing_response(message: str) -> bool:
    """True when a reply carries a down payment, cash or trade-in-only answer."""
    text = message.lower()
    return bool(
        NO_DOWN_PAYMENT_RE.search(text)
        or CASH_PAYMENT_RE.search(text)
        or ONLY_TRADE_IN_RE.search(text)
        or parse_money(text) is not None
    )


def is_cash_payment(message: str) -> bool:
    return bool(CASH_PAYMENT_RE.search(message.lower()))


def is_no_down_payment(message: str) -> bool:
    text = message.lower()
    return bool(NO_DOWN_PAYMENT_RE.search(text) or ONLY_TRADE_IN_RE.search(text))


def mentions_trade_in(message: str) -> bool:
    return _matches(WANT_TRADEIN_PATTERNS, message.lower())


def mentions_similarity(message: str) -> bool:
    return bool(re.search(
        r"\b(?:similar|alike|comparable|style of|something like|anything like|kind of like)\b",
        message.lower(),
    ))


def parse_ordinal(message: str) -> Optional[int]:
    """Zero-based position named by "the first", "number 2", "3rd" and so on."""
    match = _ORDINAL_RE.search(message.lower().strip())
    if not match:
        return None
    token = next(group for group in match.groups() if group)
    return ORDINALS.get(token)
