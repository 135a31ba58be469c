# hormone_health/smoke_check.py
# Manual check against a running server:  python -m hormone_health.smoke_check
import json

import requests

URL = "http://127.0.0.1:8000"

cases = [
    ("EMPTY", {}),
    ("PCOS pattern", {
        "q1_period": "No period",
        "q4_symptoms": ["Acne", "Hair thinning"],
        "q7_cravings": ["Sugar"],
        "q10_conditions": ["PCOS"],
    }),
    ("Luteal bloating (suppressed)", {
        "q1_period": "Yes",
        "q1_cycle_length": "28",
        "q2_last_period": "2024-03-01",
        "q4_symptoms": ["Bloating", "Breast tenderness"],
    }),
    ("Thyroid + labs", {
        "q5_energy": "Constant fatigue",
        "q6_mood": "Sad/depressed",
        "q10_conditions": ["Hashimoto's"],
        "q11_labs": {"tsh": "6.2", "t3": "2.0", "insulin": ""},
    }),
    ("Stress + cortisol", {
        "q5_energy": "Morning fatigue",
        "q7_cravings": ["Salt"],
        "q8_stress": "High",
        "q11_labs": {"dhea": "20"},
    }),
]

for label, answers in cases:
    r = requests.post(f"{URL}/api/analyze", json={"answers": answers, "referenceDate": "2024-03-20"})
    try:
        j = r.json()
    except ValueError:
        j = {"_error": r.text}
    print(f"\n=== {label} ===")
    print("STATUS:", r.status_code)
    print(json.dumps(j, indent=2))

r = requests.post(f"{URL}/api/cycle-phase", json={"lastPeriodDate": "2024-03-01", "cycleLength": 30})
print("\n=== cycle-phase ===")
print("STATUS:", r.status_code)
print(json.dumps(r.json(), indent=2))

r = requests.get(f"{URL}/api/get-responses")
print("\n=== get-responses ===")
print("STATUS:", r.status_code)
print(json.dumps(r.json(), indent=2)[:2000])
