"""
Cardio Pipeline - Tidy cardiovascular patient data

Layered pipeline over the cardiovascular-disease dataset:
extract -> transformation -> load, coordinated by orchestration.
"""
