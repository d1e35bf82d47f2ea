"""Showcase examples for charplot README."""

from charplot import diagram, edge, group, node


def hero_example():
    """Hero example: Shows the key features in one compact diagram."""
    with diagram(
            filename="docs/hero",
            svg=True,
    ) as d:
        user = node("user", "User", shape="circle")

        # Grouped nodes
        with group("app", "Our WebApp"):
            web = node("web", "Presentation\nLayer")
            logic = node("logic", "Business Layer")
            persistence = node("persistence", "Persistence Layer")

        db = node("db", "PostgreSQL", shape="cylinder")
        cache = node("cache", "Redis Cache", shape="cylinder")

        # Edges with and without labels
        user >> web
        web >> logic >> persistence
        persistence >> db | "read/write"
        edge(persistence, cache, style="..>", label="cache")

    print(d.text)


def example_decision():
    """Fan-out from a decision node, left to right."""
    with diagram(filename="docs/example_decision", direction="LR") as d:
        start = node("start", "Start", shape="terminal")
        check = node("check", "Valid?", shape="diamond")
        save = node("save", "Save")
        reject = node("reject", "Reject", shape="rounded")
        done = node("done", "Done", shape="terminal")

        start >> check
        check >> save | "yes"
        check >> reject | "no"
        save >> done
        reject >> done

    print(d.text)


def example_retry_loop():
    """A cycle: the back edge is drawn but does not constrain ranks."""
    with diagram(filename="docs/example_retry", style="ascii") as d:
        fetch = node("fetch", "Fetch")
        parse = node("parse", "Parse")
        store = node("store", "Store", shape="cylinder")

        fetch >> parse >> store
        edge(parse, fetch, style="..>", label="retry")

    print(d.text)


def example_state():
    """State diagram with start/end pseudo-states."""
    with diagram(filename="docs/example_state", kind="state") as d:
        begin = node("[*]start")
        idle = node("idle", "Idle")
        running = node("running", "Running")
        end = node("[*]end")

        begin >> idle
        idle >> running | "start"
        running >> idle | "stop"
        running >> end

    print(d.text)


if __name__ == "__main__":
    import os

    os.makedirs("docs", exist_ok=True)

    print("Generating hero example...")
    hero_example()

    print("Generating decision example...")
    example_decision()

    print("Generating retry loop example...")
    example_retry_loop()

    print("Generating state example...")
    example_state()

    print("\nAll examples generated in docs/")
