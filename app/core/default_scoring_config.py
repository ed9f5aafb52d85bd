from typing import Any, Dict, List


DEFAULT_SCORING_FIELDS: List[Dict[str, Any]] = [
    {
        "fieldName": "category",
        "label": "Category",
        "isActive": True,
        "weight": 20,
        "rules": [
            {"id": "cat1", "condition": "equals", "value": "MNC", "points": 10},
            {"id": "cat2", "condition": "equals", "value": "Regional", "points": 7},
            {"id": "cat3", "condition": "equals", "value": "Local", "points": 3},
        ],
    },
    {
        "fieldName": "location",
        "label": "Location",
        "isActive": True,
        "weight": 15,
        "rules": [
            {"id": "loc1", "condition": "contains", "value": "New York", "points": 10},
            {"id": "loc2", "condition": "contains", "value": "London", "points": 10},
            {"id": "loc3", "condition": "contains", "value": "India", "points": 5},
        ],
    },
    {
        "fieldName": "designation",
        "label": "Job Title",
        "isActive": True,
        "weight": 30,
        "rules": [
            {"id": "des1", "condition": "equals", "value": "CEO", "points": 15},
            {"id": "des2", "condition": "equals", "value": "CTO", "points": 12},
            {"id": "des3", "condition": "contains", "value": "VP", "points": 10},
            {"id": "des4", "condition": "contains", "value": "Director", "points": 8},
            {"id": "des5", "condition": "contains", "value": "Manager", "points": 5},
        ],
    },
    {
        "fieldName": "status",
        "label": "Stage",
        "isActive": True,
        "weight": 15,
        "rules": [
            {"id": "sta1", "condition": "equals", "value": "Qualified", "points": 10},
            {"id": "sta2", "condition": "equals", "value": "Contacted", "points": 5},
            {"id": "sta3", "condition": "equals", "value": "New", "points": 2},
        ],
    },
    {
        "fieldName": "industry",
        "label": "Industry",
        "isActive": True,
        "weight": 20,
        "rules": [
            {"id": "ind1", "condition": "equals", "value": "Technology", "points": 10},
            {"id": "ind2", "condition": "equals", "value": "Finance", "points": 8},
            {"id": "ind3", "condition": "equals", "value": "Education", "points": 5},
        ],
    },
]


# Stage ids equal their names so the default "status" rules above match.
DEFAULT_PIPELINE_STAGES: List[Dict[str, Any]] = [
    {"stage_id": "New", "name": "New", "order": 0, "color": "bg-blue-100"},
    {"stage_id": "Contacted", "name": "Contacted", "order": 1, "color": "bg-purple-100"},
    {"stage_id": "Qualified", "name": "Qualified", "order": 2, "color": "bg-amber-100"},
    {"stage_id": "Won", "name": "Won", "order": 3, "color": "bg-green-100"},
    {"stage_id": "Lost", "name": "Lost", "order": 4, "color": "bg-red-100"},
]
