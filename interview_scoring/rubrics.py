import re

from .models import QuestionType

COMBO_RUBRIC = {
    "rubric_name": "Combo Interview Rubric v1.0",
    "weights": {
        QuestionType.BEHAVIORAL: 0.3,
        QuestionType.MCQ: 0.3,
        QuestionType.CODING: 0.4,
    },
}

BEHAVIORAL_RUBRIC = {
    "rubric_name": "Behavioral Heuristic Rubric v1.0",
    "length_cap": 40,           # points for answer length, 1 per 10 characters
    "example_bonus": 30,        # concrete example given
    "structure_bonus": 30,      # sequencing / causal language
    "example_markers": re.compile(r"(for example|example|instance|time when|situation)", re.I),
    "structure_markers": re.compile(r"(first|second|then|finally|because|therefore)", re.I),
    "keywords": (
        "leadership", "teamwork", "communication", "problem-solving", "collaboration",
        "initiative", "responsibility", "achievement", "challenge", "solution",
        "improvement", "innovation", "efficiency", "quality", "deadline",
    ),
    "categories": (
        ("leadership", ("lead", "manage", "decision")),
        ("teamwork", ("team", "collaborate", "work with")),
        ("problem-solving", ("problem", "challenge", "difficult")),
        ("communication", ("communicate", "explain", "present")),
    ),
}

CODING_RUBRIC = {
    "rubric_name": "Coding Verdict Rubric v1.0",
    "pass_score": 70,
    "approaches": (
        ("Recursive", ("recursion", "recursive")),
        ("Iterative", ("for", "while")),
        ("Dynamic Programming", ("dp", "dynamic")),
        ("BFS", ("bfs", "breadth")),
        ("DFS", ("dfs", "depth")),
    ),
}

# score -> match quality, checked top down
MATCH_QUALITY_THRESHOLDS = ((85, "Excellent"), (70, "Good"), (40, "Fair"))

# overall score -> performance tier, checked top down
PERFORMANCE_TIERS = ((70, "good"), (50, "average"))
LOWEST_TIER = "needs improvement"

# overall score -> suggested seniority
ROLE_TIERS = ((80, "Senior level position"), (60, "Mid-level position"))
LOWEST_ROLE = "Junior level position with mentoring"


def performance_tier(score: float) -> str:
    for threshold, tier in PERFORMANCE_TIERS:
        if score >= threshold:
            return tier
    return LOWEST_TIER


def recommended_role(score: float) -> str:
    for threshold, role in ROLE_TIERS:
        if score >= threshold:
            return role
    return LOWEST_ROLE
