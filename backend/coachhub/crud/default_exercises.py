"""Starter exercise library copied into each trainer's catalogue on request."""

_STRENGTH_IMAGE = "https://images.unsplash.com/photo-1571019613454-1cb2f99b2d8b?w=800"

DEFAULT_EXERCISES = [
    # Strength
    {
        "name": "bench press",
        "display_name": "Bench Press",
        "exercise_type": "sets",
        "default_sets": 4,
        "default_reps": "8-10",
        "default_weight": "Body weight",
        "muscle_groups": ["Chest", "Triceps", "Shoulders"],
        "image_url": _STRENGTH_IMAGE,
        "video_url": "https://www.youtube.com/watch?v=rT7DgCr-3pg",
    },
    {
        "name": "squats",
        "display_name": "Squats",
        "exercise_type": "sets",
        "default_sets": 4,
        "default_reps": "10-12",
        "default_weight": "Body weight",
        "muscle_groups": ["Legs", "Quadriceps", "Glutes", "Core"],
        "image_url": _STRENGTH_IMAGE,
        "video_url": "https://www.youtube.com/watch?v=YaXPRqUwItQ",
    },
    {
        "name": "deadlifts",
        "display_name": "Deadlifts",
        "exercise_type": "sets",
        "default_sets": 4,
        "default_reps": "6-8",
        "default_weight": "Body weight",
        "muscle_groups": ["Back", "Legs", "Hamstrings", "Glutes", "Core"],
        "image_url": _STRENGTH_IMAGE,
        "video_url": "https://www.youtube.com/watch?v=op9kVnSso6Q",
    },
    {
        "name": "barbell row",
        "display_name": "Barbell Row",
        "exercise_type": "sets",
        "default_sets": 4,
        "default_reps": "8-10",
        "default_weight": "Body weight",
        "muscle_groups": ["Back", "Biceps", "Shoulders"],
        "image_url": _STRENGTH_IMAGE,
        "video_url": "https://www.youtube.com/watch?v=pa95m9jP5-M",
    },
    {
        "name": "overhead press",
        "display_name": "Overhead Press",
        "exercise_type": "sets",
        "default_sets": 3,
        "default_reps": "8-12",
        "default_weight": "Body weight",
        "muscle_groups": ["Shoulders", "Triceps", "Core"],
        "image_url": "https://images.unsplash.com/photo-1517836357463-d25dfeac3438?w=800",
        "video_url": "https://www.youtube.com/watch?v=2yjwXTZQDDI",
    },
    {
        "name": "pull ups",
        "display_name": "Pull Ups",
        "exercise_type": "sets",
        "default_sets": 3,
        "default_reps": "8-12",
        "default_weight": "Body weight",
        "muscle_groups": ["Back", "Biceps", "Shoulders"],
        "image_url": _STRENGTH_IMAGE,
        "video_url": "https://www.youtube.com/watch?v=eGo4IYlbE5g",
    },
    {
        "name": "lunges",
        "display_name": "Lunges",
        "exercise_type": "sets",
        "default_sets": 3,
        "default_reps": "12 each leg",
        "default_weight": "Body weight",
        "muscle_groups": ["Legs", "Quadriceps", "Glutes"],
        "image_url": _STRENGTH_IMAGE,
        "video_url": "https://www.youtube.com/watch?v=QOVaHwm-Q6U",
    },
    # Cardio
    {
        "name": "running",
        "display_name": "Running",
        "exercise_type": "cardio",
        "default_duration_minutes": 30,
        "default_distance_km": 5.0,
        "default_intensity": "Moderate",
        "muscle_groups": ["Legs", "Cardio"],
        "image_url": "https://images.unsplash.com/photo-1571008887538-b36bb32f4571?w=800",
        "video_url": "https://www.youtube.com/watch?v=_kGESn8ArrU",
    },
    {
        "name": "cycling",
        "display_name": "Cycling",
        "exercise_type": "cardio",
        "default_duration_minutes": 45,
        "default_distance_km": 15.0,
        "default_intensity": "Moderate",
        "muscle_groups": ["Legs", "Cardio"],
        "image_url": "https://images.unsplash.com/photo-1558618666-fcd25c85cd64?w=800",
        "video_url": "https://www.youtube.com/watch?v=Gc4aL8vY1iU",
    },
    {
        "name": "rowing",
        "display_name": "Rowing",
        "exercise_type": "cardio",
        "default_duration_minutes": 30,
        "default_distance_km": None,
        "default_intensity": "Moderate",
        "muscle_groups": ["Back", "Legs", "Cardio"],
        "image_url": _STRENGTH_IMAGE,
        "video_url": "https://www.youtube.com/watch?v=Wj4nLs3vf3o",
    },
]
