"""
Text dumps of a grid maze with its V-table, Q-table and greedy policy.

    Every grid row prints as up to four lines:

        02      SPACE:-1  SPACE:-1  GOAL:0:END
        VTable     -2.5      -1         *
        QTable    <:-1,...   ...        *
        Policy     > V       >          *

    Non-visitable cells print ``*`` in the table lines. Jump specifications
    other than a plain Welcome are listed above the grid.
"""
from tables import Action

ACTION_STR = {
    Action.LEFT: "<",
    Action.UP: "A",
    Action.DOWN: "V",
    Action.RIGHT: ">",
}


def float2str(value, full=False):
    if full:
        return "%f" % value
    if value % 1 == 0:
        return "%d" % int(value)
    if (value * 10.0) % 1 == 0:
        return "%0.1f" % value
    return "%0.2f" % value


def str_center(s, length):
    space = length - len(s)
    assert space >= 0, "Cannot center text if it's larger than space"
    # odd padding goes to the left
    return " " * (space - space // 2) + s + " " * (space // 2)


def action_values_str(qtable, row, col, full=False):
    avl = qtable.action_values(row, col)
    if len(avl) == 0:
        return "*"
    return ",".join("%s:%s" % (ACTION_STR[av.action], float2str(av.value, full)) for av in avl)


def best_action_str(policy_table, row, col):
    avl = policy_table.action_values(row, col)
    if len(avl) == 0:
        return "*"
    assert len({av.value for av in avl}) == 1, "Expected all action values to have same probability: %s" % (avl,)
    return " ".join(ACTION_STR[av.action] for av in avl)


def jump_specifications_str(maze_env):
    lines = []
    for state in maze_env.states():
        if state.is_100_percent_welcoming_state():
            continue
        for i, (js, p) in enumerate(state.jump_probabilities):
            prefix = "[%d,%d]: " % state.position if i == 0 else " " * len("[%d,%d]: " % state.position)
            lines.append("%sProbability: %0.2f, Type: %s" % (prefix, p, js))
    if len(lines) == 0:
        return []
    return ["", "Transition probabilities (non-stochastic transitions are not printed, i.e. as expected based on action)"] \
        + lines + [""]


def _maze_cells(maze_env, full):
    cells = []
    for row in maze_env.maze:
        row_strs = []
        for state in row:
            s = "%s:%s" % (state.kind, float2str(state.reward, full))
            if state.is_end:
                s += ":END"
            elif state.is_start:
                s += ":START"
            row_strs.append(s)
        cells.append(row_strs)
    return cells


def format_maze_and_table(header, maze_env, vtable=None, qtable=None, print_policy=False,
                          maze_full_float=False, vtable_full_float=False, qtable_full_float=False):
    sections = [("", _maze_cells(maze_env, maze_full_float))]

    if vtable is not None or qtable is not None:
        policy_table = qtable if qtable is not None else maze_env.create_qtable_from_vtable(vtable)
        policy_table = policy_table.reduce_to_max_table()

        def cell_strs(fn):
            return [[fn(s) if s.is_visitable else "*" for s in row] for row in maze_env.maze]

        if vtable is not None:
            sections.append(("VTable", cell_strs(lambda s: float2str(vtable[s.row, s.col], vtable_full_float))))
        if qtable is not None:
            sections.append(("QTable", cell_strs(lambda s: action_values_str(qtable, s.row, s.col, qtable_full_float))))
        if print_policy:
            sections.append(("Policy", cell_strs(lambda s: best_action_str(policy_table, s.row, s.col))))

    width = max([2] + [len(c) for _, rows in sections for row in rows for c in row])

    lines = []
    if len(header) > 0:
        lines.append(header)
    lines += jump_specifications_str(maze_env)
    lines.append(" " * 8 + "".join(str_center("%02d" % i, width) + "  " for i in range(maze_env.col_count)))
    for ri in range(maze_env.row_count):
        for label, rows in sections:
            first = "%02d" % ri if label == "" else label
            lines.append("%-8s" % first + "".join(str_center(c, width) + "  " for c in rows[ri]))
        lines.append("")
    return "\n".join(lines)


def print_maze_and_table(header, maze_env, **kwargs):
    print(format_maze_and_table(header, maze_env, **kwargs))
