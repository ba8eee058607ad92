from longorwide.tools.survey.qualtrics import (
    prepare_qualtrics,
    reverse_score,
    prepare_qualtrics_dataset,
    reverse_score_dataset,
    get_all_survey_tools,
)
