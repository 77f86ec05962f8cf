from datetime import datetime

# Each bonus is paid at most once per ISO week (weeks start on Monday).
POST_CREATION = 100
WISH_CREATION = 100
POST_SHARE = 50

def week_key(moment: datetime) -> str:
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"
