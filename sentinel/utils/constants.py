"""
Constants shared across the analytics engine.
"""

# Default policy timeline (deadline reference data)
DEFAULT_POLICY_TIMELINE = [
    {
        "date": "2024-10-15",
        "title": "NRC Draft Review Period",
        "description": "Final review period announced for NRC draft submissions",
    },
    {
        "date": "2024-12-31",
        "title": "Citizenship Amendment Deadline",
        "description": "Extended deadline for citizenship documentation under CAA",
    },
    {
        "date": "2025-03-31",
        "title": "Border Security Enhancement",
        "description": "Implementation of enhanced border verification protocols",
    },
]

# Age group labels (enrollment buckets)
AGE_GROUPS = ["0-5", "5-17", "18+"]
