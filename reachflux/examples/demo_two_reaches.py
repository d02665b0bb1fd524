from reachflux import EngineConfig, build_model, run_to_steady_state

cells = [
    {"index": 1, "currency": "water", "amount": 52.5, "length": 250.0},
    {"index": 2, "currency": "NO3", "amount": 52.5 * 19.3, "linked_cell": 1},
    {"index": 3, "currency": "water", "amount": 60.0, "length": 250.0},
    {"index": 4, "currency": "NO3", "amount": 60.0 * 19.3, "linked_cell": 3},
]

transports = [
    {"index": 1, "currency": "water", "downstream": 1, "discharge": 0.069},
    {"index": 2, "currency": "water", "upstream": 1, "downstream": 3, "discharge": 0.069},
    {"index": 3, "currency": "water", "upstream": 3, "discharge": 0.069},
    {"index": 4, "currency": "NO3", "downstream": 2, "concentration": 19.3, "water_boundary": 1},
    {"index": 5, "currency": "NO3", "upstream": 2, "downstream": 4, "water_boundary": 2},
    {"index": 6, "currency": "NO3", "upstream": 4, "water_boundary": 3},
]

reactions = [
    {"index": 7, "cell": 2, "alpha": 1.5, "k": 1e-5, "vol_water_in_storage": 50.0,
     "tau_min": 60.0, "tau_max": 365 * 86400.0},
    {"index": 8, "cell": 4, "alpha": 1.5, "k": 1e-5, "vol_water_in_storage": 20.0,
     "tau_min": 60.0, "tau_max": 365 * 86400.0},
]

model = build_model(cells, transports, reactions, config=EngineConfig(time_step=60.0))
outcome = run_to_steady_state(model)

print(outcome)
for index in (2, 4):
    print(index, model.get_attribute("cell", index, "concentration"))
