import math


def circle_radius(cs):
    return 54.4 - 4.48 * cs


def within_radius(x, y, center, radius):
    if center is None:
        return False
    return math.hypot(x - center[0], y - center[1]) <= radius


def calculate_preempt(ar):
    if ar < 5:
        return 1200 + 600 * (5 - ar) / 5
    elif ar == 5:
        return 1200
    else:
        return 1200 - 750 * (ar - 5) / 5
