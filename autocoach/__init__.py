"""
AutoCoach

Backend for a fantasy sports team-management app. Keeps Yahoo Fantasy Sports
teams in sync with user settings stored in Firestore, scores players and
suggests add/drop transactions, and runs the weekly transaction cycle.
"""

__version__ = "1.0.0"
__author__ = "AutoCoach Team"
__description__ = "Fantasy sports team management for Yahoo Fantasy Sports"
