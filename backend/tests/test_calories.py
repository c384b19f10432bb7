from tribe_track.services.track.calories import BASE_METS, estimate_calories, rpe_label


def test_estimate_known_values():
    # MET 3.0 x 1.0 x 65 kg x 1 h
    assert estimate_calories(60, "mat", 5) == 195
    # 3.5 x 1.08 x 65 x 0.75 = 184.275
    assert estimate_calories(45, "reformer", 7) == 184
    # 3.8 x 1.2 x 65 x 0.5 = 148.2
    assert estimate_calories(30, "tower", 10) == 148


def test_unknown_type_uses_other():
    assert estimate_calories(60, "aerial", 5) == estimate_calories(60, "other", 5) == 208


def test_type_is_case_insensitive():
    assert estimate_calories(45, "Reformer", 7) == estimate_calories(45, "reformer", 7)


def test_explicit_weight():
    assert estimate_calories(60, "mat", 5, weight_kg=80) == 240


def test_deterministic():
    results = {estimate_calories(50, "tower", 8) for _ in range(20)}
    assert len(results) == 1


def test_monotonic_in_rpe_and_duration():
    for workout_type in BASE_METS:
        for duration in range(1, 181):
            values = [estimate_calories(duration, workout_type, rpe) for rpe in range(1, 11)]
            assert values == sorted(values)

        for rpe in range(1, 11):
            values = [estimate_calories(d, workout_type, rpe) for d in range(1, 181)]
            assert values == sorted(values)


def test_rpe_labels():
    assert rpe_label(1) == "Very light"
    assert rpe_label(4) == "Light"
    assert rpe_label(6) == "Moderate"
    assert rpe_label(8) == "Hard"
    assert rpe_label(10) == "All-out"
