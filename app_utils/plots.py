import matplotlib.pyplot as plt
import seaborn as sns

sns.set_theme(style="darkgrid")

STATUS_COLORS = {"Done": "#22c55e", "Open": "#6b7280"}


def clean_axes(ax):
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.grid(alpha=0.2)
    ax.tick_params(labelsize=9)


def completion_chart(df, title="Today"):
    # df from features.insights.habits_frame
    if df is None or df.empty:
        return None
    use = df.copy()
    use["label"] = [f"{p + 1}. {n}" for p, n in zip(use["position"], use["name"])]
    use["status"] = use["done"].map({True: "Done", False: "Open"})
    use["value"] = 1

    fig, ax = plt.subplots(figsize=(6, 0.45 * len(use) + 1.2), dpi=150)
    sns.barplot(
        data=use, x="value", y="label", hue="status", hue_order=list(STATUS_COLORS),
        palette=STATUS_COLORS, dodge=False, ax=ax,
    )
    ax.set_title(title, fontsize=12)
    ax.set_xlabel("")
    ax.set_ylabel("")
    ax.set_xticks([])
    clean_axes(ax)
    fig.tight_layout()
    return fig
