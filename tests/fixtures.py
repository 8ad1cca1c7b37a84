"""
Sample payloads and fake Claude responses shared by the test modules.
"""
from types import SimpleNamespace


def quiz_payload(n=3):
    return {
        "title": "Untangling today",
        "description": "A few questions about how the day landed.",
        "questions": [
            {
                "id": i,
                "question": f"Question {i}?",
                "options": [
                    {"id": "a", "text": "Barely", "weight": 2},
                    {"id": "b", "text": "A lot", "weight": 8},
                ],
            }
            for i in range(1, n + 1)
        ],
    }


def result_payload(crisis=None):
    data = {
        "emotionalState": "Tired and disappointed.",
        "copingStyle": "Holding it in.",
        "potentialNeeds": "Rest and reassurance.",
        "psychologicalInsight": "Loss of a role can feel like loss of self.",
        "suggestions": ["Take a walk", "Call a friend", "Write down three small wins"],
    }
    if crisis is not None:
        data["crisisWarning"] = crisis
    return data


def tool_response(name, payload):
    return SimpleNamespace(content=[SimpleNamespace(type="tool_use", name=name, input=payload)])


def text_response(text):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])
