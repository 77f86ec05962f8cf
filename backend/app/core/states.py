REDEEM_STATES = ["pending", "approved", "completed", "rejected"]

TRANSITIONS = {
    ("pending",  "approved"):  {"refund": False},
    ("approved", "completed"): {"refund": False},
    ("pending",  "rejected"):  {"refund": True},
}

def can_transition(src: str, dst: str) -> bool:
    return (src, dst) in TRANSITIONS

def refunds_points(src: str, dst: str) -> bool:
    rule = TRANSITIONS.get((src, dst))
    return bool(rule and rule["refund"])
