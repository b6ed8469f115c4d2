from instructional_terms import CHOOSE_OPTION


I_AM_OPTIONS = [
    dict(CHOOSE_OPTION),
    {"key": "student", "text": "Student", "value": "student"},
    {"key": "instructor", "text": "Instructor", "value": "instructor"},
]

STUDENT_USE_OPTIONS = [
    dict(CHOOSE_OPTION),
    {"key": "primary", "text": "As the primary textbook", "value": "Primary Textbook"},
    {
        "key": "supplement-suggested",
        "text": "Supplementary resource (suggested by instructor)",
        "value": "Supplementary (suggested by instructor)",
    },
    {
        "key": "supplement-notsuggested",
        "text": "Supplementary resource (not suggested by instructor)",
        "value": "Supplementary (not suggested by instructor)",
    },
]

# Stored value -> label, in display order.
ACCESS_METHOD_LABELS = {
    "online": "Online",
    "print": "Printed Book",
    "pdf": "Downloaded PDF",
    "lms": "Via LMS",
    "librebox": "LibreTexts in a Box",
}

ACCESS_METHOD_OPTIONS = [
    {"key": value, "text": label, "value": value}
    for value, label in ACCESS_METHOD_LABELS.items()
]


def build_access_methods_list(methods) -> str:
    """
    ['online', 'pdf'] -> 'Online, Downloaded PDF'.
    Input order is kept; unrecognized values are skipped.
    """
    if not methods:
        return ""
    labels = [
        ACCESS_METHOD_LABELS[m]
        for m in methods
        if isinstance(m, str) and m in ACCESS_METHOD_LABELS
    ]
    return ", ".join(labels)
