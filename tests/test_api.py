def test_api_reexports_resolve():
    from cargo_offload import api

    missing = [name for name in api.__all__ if not hasattr(api, name)]
    assert missing == []
    assert api.CargoOffload.__name__ == "CargoOffload"
