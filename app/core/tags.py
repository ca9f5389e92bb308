tags_metadata = [
    {
        "name": "Draw",
        "description": "Start, cancel and follow the weighted winner draw.",
    },
    {
        "name": "Health",
        "description": "Service liveness.",
    },
]
