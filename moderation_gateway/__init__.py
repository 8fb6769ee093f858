"""
Content moderation gateway for the halal restaurant review site.

Review text, review photos and user avatars are screened by an external
vision-language model before they are published.
"""

__version__ = "1.0.0"
