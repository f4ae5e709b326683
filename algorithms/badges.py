"""
Donor badges earned from the number of completed donations
"""

# (minimum donations, badge name), lowest threshold first
BADGE_THRESHOLDS = [
    (1, 'First Drop'),
    (5, 'Life Saver'),
    (10, 'Hero'),
    (25, 'Champion'),
    (50, 'Legend'),
]


def badges_for_count(donation_count):
    """
    Full badge list implied by a donation count.

    Always computed from scratch so the stored list can never drift from
    the count.
    """
    return [
        {'name': name, 'threshold': threshold}
        for threshold, name in BADGE_THRESHOLDS
        if donation_count >= threshold
    ]


def badge_names(badges):
    return {badge['name'] for badge in badges}
