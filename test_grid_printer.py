from grid_printer import float2str, str_center, format_maze_and_table, print_maze_and_table, best_action_str
from tables import Action, VTable
from main import build_maze


def test_float2str():
    assert float2str(1.0) == "1"
    assert float2str(-100.0) == "-100"
    assert float2str(-1.5) == "-1.5"
    assert float2str(0.25) == "0.25"
    assert float2str(1 / 3) == "0.33"
    assert float2str(2.0, full=True) == "2.000000"


def test_str_center():
    assert str_center("ab", 5) == "  ab "
    assert str_center("ab", 6) == "  ab  "
    assert str_center("ab", 2) == "ab"


def test_maze_only():
    env = build_maze(rng=0)
    out = format_maze_and_table("Maze", env)
    lines = out.splitlines()
    assert lines[0] == "Maze"
    assert "START:-1:START" in out
    assert "GOAL:0:END" in out
    assert "HOLE:-100:END" in out
    assert "[4,1]: Probability: 0.50, Type: Relative (1,0)" in out
    assert "Probability: 0.50, Type: Welcome" in out
    assert "VTable" not in out and "QTable" not in out and "Policy" not in out


def test_tables_and_policy():
    env = build_maze(rng=0)
    qtable = env.create_qtable_from_uniform(0.0)
    qtable[5, 0, Action.UP] = 1.0
    out = format_maze_and_table("", env, vtable=VTable(6, 6), qtable=qtable, print_policy=True)

    rows = {line.split()[0]: line for line in out.splitlines() if line.strip()}
    assert "VTable" in rows and "QTable" in rows and "Policy" in rows
    assert "<:0,A:1,V:0,>:0" in out

    policy_lines = [line for line in out.splitlines() if line.startswith("Policy")]
    assert len(policy_lines) == 6
    last = policy_lines[-1].split()
    # (5,0) is greedy UP, the rest of row 5 is terminal
    assert last[1:] == ["A", "*", "*", "*", "*", "*"]


def test_best_action_str():
    env = build_maze(rng=0)
    policy = env.create_qtable_from_uniform(0.0).reduce_to_max_table()
    assert best_action_str(policy, 0, 0) == "< A V >"
    assert best_action_str(policy, 5, 5) == "*"


def test_print_maze_and_table(capsys):
    env = build_maze(rng=0)
    print_maze_and_table("Header", env, qtable=env.create_qtable_from_uniform(0.0), print_policy=True)
    out = capsys.readouterr().out
    assert out.startswith("Header\n")
    assert "Policy" in out
