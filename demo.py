"""
AVL Tree Demo -- Rotation cases, height growth against the AVL bound,
minimum extraction and deletion rebalancing.

Generates:
- viz/*.png -- Individual visualization files
- report.pdf -- Comprehensive PDF report
"""

import sys
from pathlib import Path

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))
from avl_tree import AVLTree
from avl_commands import to_json

SEED = 42
rng = np.random.default_rng(SEED)

VIZ_DIR = Path(__file__).parent / "viz"
VIZ_DIR.mkdir(exist_ok=True)

COLORS = {
    "blue": "#3498db",
    "red": "#e74c3c",
    "orange": "#f39c12",
    "green": "#27ae60",
    "purple": "#9b59b6",
    "dark": "#2c3e50",
}


def build(keys, validate=True):
    tree = AVLTree(validate=validate)
    for key in keys:
        tree.insert(int(key))
    return tree


def draw_tree(ax, tree, title):
    """Lay nodes out by in-order rank (x) and depth (y) and draw the links."""
    snapshot = tree.snapshot()
    ax.set_title(title, fontsize=10, fontweight="bold")
    ax.axis("off")
    nodes = snapshot["nodes"]
    if not nodes:
        ax.text(0.5, 0.5, "(empty)", ha="center", va="center", transform=ax.transAxes)
        return

    # Snapshot nodes are breadth-first, so children are matched by position
    # rather than by key (duplicate keys would collide).
    children = {}
    next_index = 1
    for index, node in enumerate(nodes):
        children[index] = {}
        for side in ("left", "right"):
            if side in node:
                children[index][side] = next_index
                next_index += 1

    positions = {}

    def place(index, depth):
        if "left" in children[index]:
            place(children[index]["left"], depth + 1)
        positions[index] = (len(positions), -depth)
        if "right" in children[index]:
            place(children[index]["right"], depth + 1)

    place(0, 0)

    for index, kids in children.items():
        x, y = positions[index]
        for child in kids.values():
            cx, cy = positions[child]
            ax.plot([x, cx], [y, cy], color=COLORS["dark"], lw=1.2, zorder=1)
    for index, node in enumerate(nodes):
        x, y = positions[index]
        color = COLORS["green"] if node["balance factor"] == 0 else COLORS["orange"]
        ax.scatter([x], [y], s=700, color=color, edgecolor="white", zorder=2)
        ax.text(x, y, str(node["key"]), ha="center", va="center", fontsize=9,
                fontweight="bold", color="white", zorder=3)
        ax.text(x, y - 0.32, f"bf={node['balance factor']}", ha="center",
                va="top", fontsize=7, color="gray")
    ax.set_xlim(-1, len(positions))
    ax.set_ylim(-(snapshot["height"] + 1), 0.6)


# ---------------------------------------------------------------------------
# Example 1: The Four Insertion Rotation Cases
# ---------------------------------------------------------------------------
def example_1_rotation_cases():
    """Show that every insertion case ends with the middle key on top."""
    print("=" * 60)
    print("Example 1: Insertion Rotation Cases")
    print("=" * 60)

    cases = [
        ("Left-left (right rotation)", [30, 20, 10]),
        ("Right-right (left rotation)", [10, 20, 30]),
        ("Left-right (double)", [30, 10, 20]),
        ("Right-left (double)", [10, 30, 20]),
    ]

    fig, axes = plt.subplots(1, len(cases), figsize=(16, 4))
    for ax, (name, keys) in zip(axes, cases):
        tree = build(keys)
        root = tree.snapshot()["root"]
        print(f"\n  {name}: insert {keys}")
        print(f"    Root after rebalancing: {root}, height {tree.height()}")
        assert root == 20
        draw_tree(ax, tree, f"{name}\ninsert {keys}")

    plt.tight_layout()
    fig.savefig(VIZ_DIR / "01_rotation_cases.png", dpi=150, bbox_inches="tight")
    plt.close(fig)
    print("\n  Saved: viz/01_rotation_cases.png")


# ---------------------------------------------------------------------------
# Example 2: Height Growth
# ---------------------------------------------------------------------------
def example_2_height_growth():
    """Compare tree height with log2(n) and the AVL worst-case bound."""
    print("\n" + "=" * 60)
    print("Example 2: Height Growth")
    print("=" * 60)

    sizes = np.unique(np.logspace(0, 3.5, 30).astype(int))
    sorted_heights = []
    random_heights = []
    for n in sizes:
        sorted_heights.append(build(range(n), validate=False).height())
        random_heights.append(build(rng.permutation(n), validate=False).height())

    lower = np.floor(np.log2(sizes))
    upper = 1.44 * np.log2(sizes + 2) - 1.328

    for n, hs, hr in list(zip(sizes, sorted_heights, random_heights))[::5]:
        print(f"  n={n:5d}  sorted height={hs:2d}  shuffled height={hr:2d}")
    assert all(h <= u + 1e-9 for h, u in zip(sorted_heights, upper))
    assert all(h <= u + 1e-9 for h, u in zip(random_heights, upper))

    fig, ax = plt.subplots(figsize=(9, 5))
    ax.plot(sizes, sorted_heights, "o-", color=COLORS["blue"], label="Sorted inserts")
    ax.plot(sizes, random_heights, "s-", color=COLORS["purple"], label="Shuffled inserts")
    ax.plot(sizes, lower, "--", color=COLORS["green"], label="floor(log2 n)")
    ax.plot(sizes, upper, "--", color=COLORS["red"], label="1.44 log2(n+2) - 1.328")
    ax.set_xscale("log")
    ax.set_xlabel("Number of keys")
    ax.set_ylabel("Tree height (leaf = 0)")
    ax.set_title("AVL Height Stays Logarithmic", fontsize=11, fontweight="bold")
    ax.legend(fontsize=9)
    ax.grid(True, alpha=0.3)

    fig.savefig(VIZ_DIR / "02_height_growth.png", dpi=150, bbox_inches="tight")
    plt.close(fig)
    print("\n  Saved: viz/02_height_growth.png")


# ---------------------------------------------------------------------------
# Example 3: Minimum Extraction
# ---------------------------------------------------------------------------
def example_3_delete_min():
    """Drain a tree with delete_min and track its shape."""
    print("\n" + "=" * 60)
    print("Example 3: Minimum Extraction")
    print("=" * 60)

    keys = [20, 22, 10, 5, 15, 13, 14, 25, 4, 3, 2]
    tree = build(keys)
    heights = [tree.height()]
    drained = []
    while not tree.empty():
        drained.append(tree.delete_min())
        heights.append(tree.height())

    print(f"  Inserted: {keys}")
    print(f"  Drained:  {drained}")
    assert drained == sorted(keys)

    fig, axes = plt.subplots(1, 3, figsize=(16, 4.5))
    draw_tree(axes[0], build(keys), "Before extraction")
    partial = build(keys)
    for _ in range(4):
        partial.delete_min()
    draw_tree(axes[1], partial, "After four delete_min calls")
    axes[2].step(range(len(heights)), heights, where="post", color=COLORS["blue"])
    axes[2].set_xlabel("delete_min calls")
    axes[2].set_ylabel("Tree height")
    axes[2].set_title("Height while draining", fontsize=10, fontweight="bold")
    axes[2].grid(True, alpha=0.3)

    plt.tight_layout()
    fig.savefig(VIZ_DIR / "03_delete_min.png", dpi=150, bbox_inches="tight")
    plt.close(fig)
    print("\n  Saved: viz/03_delete_min.png")


# ---------------------------------------------------------------------------
# Example 4: Deletion by Key
# ---------------------------------------------------------------------------
def example_4_delete_by_key():
    """Delete leaf, one-child and two-child nodes, with a duplicate key present."""
    print("\n" + "=" * 60)
    print("Example 4: Deletion by Key")
    print("=" * 60)

    deletions = (10, 5, 34)
    fig, axes = plt.subplots(1, len(deletions) + 1, figsize=(16, 4.5))

    tree = build([10, 34, 60, 5, 3, 60, 70, 9])
    draw_tree(axes[0], tree, "After inserts")
    for ax, key in zip(axes[1:], deletions):
        found = tree.delete(key)
        print(f"  delete({key}) -> {found}, find({key}) -> {tree.find(key)}, size {tree.size()}")
        assert found and not tree.find(key)
        draw_tree(ax, tree, f"After delete({key})")

    print("\n  Final report:")
    for line in to_json(tree.snapshot()).splitlines():
        print(f"    {line}")

    plt.tight_layout()
    fig.savefig(VIZ_DIR / "04_delete_by_key.png", dpi=150, bbox_inches="tight")
    plt.close(fig)
    print("\n  Saved: viz/04_delete_by_key.png")


# ---------------------------------------------------------------------------
# PDF Report
# ---------------------------------------------------------------------------
def generate_pdf_report():
    """Bundle a title page and every visualization into report.pdf."""
    print("\n" + "=" * 60)
    print("Generating PDF Report")
    print("=" * 60)

    report_path = Path(__file__).parent / "report.pdf"
    viz_files = sorted(VIZ_DIR.glob("*.png"))

    with PdfPages(str(report_path)) as pdf:
        fig, ax = plt.subplots(figsize=(11, 8.5))
        ax.axis("off")
        ax.text(0.5, 0.78, "AVL Tree", fontsize=28, fontweight="bold",
                ha="center", va="center", transform=ax.transAxes)
        ax.text(0.5, 0.68, "Rotations That Keep a Search Tree Logarithmic",
                fontsize=13, ha="center", va="center", transform=ax.transAxes, color="gray")
        info_text = (
            "Every node caches its height and its balance factor,\n"
            "height(right) - height(left). After each insertion or deletion the\n"
            "tree walks back to the root and rotates wherever the balance factor\n"
            "reaches +2 or -2, so the height never exceeds about 1.44 log2(n).\n\n"
            "This demo covers:\n"
            "  1. The four insertion rotation cases\n"
            "  2. Height growth for sorted and shuffled inserts\n"
            "  3. Draining a tree with delete_min\n"
            "  4. Deleting leaf, one-child and two-child nodes\n\n"
            f"Random seed: {SEED}\n"
            f"Number of visualizations: {len(viz_files)}"
        )
        ax.text(0.5, 0.32, info_text, fontsize=11, ha="center", va="center",
                transform=ax.transAxes, linespacing=1.6)
        ax.text(0.5, 0.06, "Generated by demo.py", fontsize=10, ha="center",
                va="center", transform=ax.transAxes, style="italic", color="gray")
        pdf.savefig(fig)
        plt.close(fig)

        for viz_file in viz_files:
            img = plt.imread(str(viz_file))
            fig, ax = plt.subplots(figsize=(11, 8.5))
            ax.imshow(img)
            ax.axis("off")
            pdf.savefig(fig)
            plt.close(fig)

    print(f"  Report saved: report.pdf ({len(viz_files) + 1} pages)")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main():
    print("AVL Tree Demo")
    print("=" * 60)
    print(f"Seed: {SEED}")
    print()

    example_1_rotation_cases()
    example_2_height_growth()
    example_3_delete_min()
    example_4_delete_by_key()
    generate_pdf_report()

    print("\n" + "=" * 60)
    print("All examples completed successfully.")
    print(f"Visualizations: {VIZ_DIR}/")
    print(f"Report: {Path(__file__).parent / 'report.pdf'}")
    print("=" * 60)


if __name__ == "__main__":
    main()
