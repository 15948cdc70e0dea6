"""
Canned replies for common health questions.

The reply is picked by plain substring matching over an ordered rule table:
the first rule with a keyword contained in the lower-cased query wins, and
anything unmatched gets the general disclaimer.
"""
from dataclasses import dataclass
from typing import Sequence, Tuple

HEADACHE_ADVICE = (
    "For headaches, try resting in a quiet, dark room. Stay hydrated and consider "
    "over-the-counter pain relievers like acetaminophen or ibuprofen. If headaches "
    "persist or worsen, consult a healthcare provider."
)

FEVER_ADVICE = (
    "For fever, stay hydrated, rest, and monitor your temperature. Over-the-counter "
    "fever reducers like acetaminophen or ibuprofen can help. Seek medical attention "
    "if fever exceeds 103°F (39.4°C) or lasts more than 3 days."
)

COLD_FLU_ADVICE = (
    "For cold or flu symptoms, get plenty of rest, stay hydrated, and use "
    "over-the-counter medications for symptom relief. Wash hands frequently and "
    "avoid close contact with others. Consult a doctor if symptoms worsen or "
    "persist beyond 10 days."
)

COUGH_ADVICE = (
    "For a cough, stay hydrated, use honey (for ages 1+), and consider cough "
    "suppressants. Avoid irritants like smoke. If cough persists beyond 3 weeks, "
    "produces blood, or is accompanied by fever, see a healthcare provider."
)

GENERAL_DISCLAIMER = (
    "I understand you have a health concern. While I can provide general "
    "information, I recommend consulting with a qualified healthcare professional "
    "for personalized medical advice and proper diagnosis. Always seek immediate "
    "medical attention for emergencies."
)


@dataclass(frozen=True)
class Rule:
    name: str
    keywords: Tuple[str, ...]
    reply: str

    def matches(self, lowered: str) -> bool:
        return any(keyword in lowered for keyword in self.keywords)


# Priority order matters: "fever and headache" is answered as a headache.
RULES: Tuple[Rule, ...] = (
    Rule("headache", ("headache",), HEADACHE_ADVICE),
    Rule("fever", ("fever",), FEVER_ADVICE),
    Rule("cold_flu", ("cold", "flu"), COLD_FLU_ADVICE),
    Rule("cough", ("cough",), COUGH_ADVICE),
)


def match_rule(query: str, rules: Sequence[Rule] = RULES):
    """Return the first rule matching ``query``, or None."""
    lowered = query.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule
    return None


def select_response(query: str, rules: Sequence[Rule] = RULES) -> str:
    rule = match_rule(query, rules)
    return rule.reply if rule else GENERAL_DISCLAIMER
